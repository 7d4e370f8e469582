"""Create user, pending_upload and circular tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # Reusable updated_at trigger function
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
          NEW.updated_at = NOW();
          RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)

    op.create_table(
        'user',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('role', sa.Text(), server_default='user', nullable=False),
        sa.Column('institution_name', sa.Text(), nullable=True),
        sa.Column('contact_person', sa.Text(), nullable=True),
        sa.Column('phone', sa.Text(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('city', sa.Text(), nullable=True),
        sa.Column('state', sa.Text(), nullable=True),
        sa.Column('pincode', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_user_email'),
        sa.CheckConstraint("role IN ('admin', 'user')", name='ck_user_role'),
    )

    op.create_table(
        'pending_upload',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('order_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.Text(), server_default='Education', nullable=False),
        sa.Column('file_id', sa.Text(), nullable=False),
        sa.Column('file_name', sa.Text(), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('uploaded_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('guest_name', sa.Text(), nullable=True),
        sa.Column('guest_email', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), server_default='pending', nullable=False),
        sa.Column('reviewed_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('review_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['uploaded_by_id'], ['user.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['reviewed_by_id'], ['user.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('file_id', name='uq_pending_upload_file_id'),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name='ck_pending_upload_status'),
        sa.CheckConstraint(
            "(uploaded_by_id IS NOT NULL AND guest_name IS NULL AND guest_email IS NULL)"
            " OR (uploaded_by_id IS NULL AND guest_name IS NOT NULL)",
            name='ck_pending_upload_submitter',
        ),
    )

    op.create_index('ix_pending_upload_status_created', 'pending_upload', ['status', 'created_at'])
    op.create_index('ix_pending_upload_uploaded_by', 'pending_upload', ['uploaded_by_id'])

    op.create_table(
        'circular',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('order_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.Text(), server_default='Education', nullable=False),
        sa.Column('file_id', sa.Text(), nullable=False),
        sa.Column('file_name', sa.Text(), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('uploaded_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('guest_name', sa.Text(), nullable=True),
        sa.Column('guest_email', sa.Text(), nullable=True),
        sa.Column('is_published', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('is_approved_by_admin', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        # NULL status marks records from before moderation existed; read as approved
        sa.Column('status', sa.Text(), server_default='approved', nullable=True),
        sa.Column('review_notes', sa.Text(), nullable=True),
        sa.Column('origin', sa.Text(), server_default='direct_upload', nullable=False),
        sa.Column('source_submission_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['uploaded_by_id'], ['user.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('file_id', name='uq_circular_file_id'),
        sa.UniqueConstraint('source_submission_id', name='uq_circular_source_submission_id'),
        sa.CheckConstraint(
            "status IS NULL OR status IN ('pending', 'approved', 'rejected')",
            name='ck_circular_status',
        ),
        sa.CheckConstraint("origin IN ('direct_upload', 'submission')", name='ck_circular_origin'),
    )

    op.create_index('ix_circular_category_created', 'circular', ['category', 'created_at'])
    op.create_index('ix_circular_status_created', 'circular', ['status', 'created_at'])
    op.create_index('ix_circular_uploaded_by', 'circular', ['uploaded_by_id'])

    for table in ('user', 'pending_upload', 'circular'):
        op.execute(f"""
            CREATE TRIGGER update_{table}_updated_at
            BEFORE UPDATE ON "{table}"
            FOR EACH ROW
            EXECUTE FUNCTION update_updated_at_column();
        """)


def downgrade():
    for table in ('circular', 'pending_upload', 'user'):
        op.execute(f'DROP TRIGGER IF EXISTS update_{table}_updated_at ON "{table}"')

    op.drop_index('ix_circular_uploaded_by', table_name='circular')
    op.drop_index('ix_circular_status_created', table_name='circular')
    op.drop_index('ix_circular_category_created', table_name='circular')
    op.drop_table('circular')

    op.drop_index('ix_pending_upload_uploaded_by', table_name='pending_upload')
    op.drop_index('ix_pending_upload_status_created', table_name='pending_upload')
    op.drop_table('pending_upload')

    op.drop_table('user')

    op.execute('DROP FUNCTION IF EXISTS update_updated_at_column()')
