"""initial social schema: profiles, venues, sessions, attendance, matching

Revision ID: 3a9e5c71d2b0
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '3a9e5c71d2b0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('display_name', sa.String(length=80), nullable=False),
        sa.Column('bio', sa.String(length=240), nullable=True),
        sa.Column('phone_number', sa.String(length=32), nullable=True),
        sa.Column('is_private', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('system_role', sa.String(length=32), nullable=False, server_default='NONE'),
        sa.Column('blocked_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('blocked_reason', sa.String(length=200), nullable=True),
        sa.Column('blocked_permanently', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('is_deactivated', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('deactivated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('last_seen_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'venues',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('slug', sa.String(length=80), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_venues_slug'), 'venues', ['slug'], unique=True)

    op.create_table(
        'venue_members',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('venue_id', sa.Integer(), nullable=False),
        sa.Column('profile_id', sa.String(length=64), nullable=False),
        sa.Column('venue_role', sa.String(length=32), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('show_in_guest_feed', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id']),
        sa.ForeignKeyConstraint(['venue_id'], ['venues.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('venue_id', 'profile_id', name='uq_venue_member'),
    )
    op.create_index(op.f('ix_venue_members_venue_id'), 'venue_members', ['venue_id'], unique=False)
    op.create_index(op.f('ix_venue_members_profile_id'), 'venue_members', ['profile_id'], unique=False)

    op.create_table(
        'session_metadata',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('venue_id', sa.Integer(), nullable=False),
        sa.Column('session_name', sa.String(length=120), nullable=False),
        sa.Column('session_description', sa.String(length=2000), nullable=True),
        sa.Column('session_type', sa.String(length=16), nullable=False, server_default='event'),
        sa.Column('duration_hours', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['venue_id'], ['venues.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_session_metadata_venue_id'), 'session_metadata', ['venue_id'], unique=False)
    op.create_index(
        'uq_session_metadata_one_active',
        'session_metadata',
        ['venue_id'],
        unique=True,
        postgresql_where=sa.text('is_active'),
    )

    op.create_table(
        'attendances',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('profile_id', sa.String(length=64), nullable=False),
        sa.Column('venue_id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('entered_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('exited_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id']),
        sa.ForeignKeyConstraint(['session_id'], ['session_metadata.id']),
        sa.ForeignKeyConstraint(['venue_id'], ['venues.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_attendances_profile_id'), 'attendances', ['profile_id'], unique=False)
    op.create_index(op.f('ix_attendances_venue_id'), 'attendances', ['venue_id'], unique=False)
    op.create_index(op.f('ix_attendances_session_id'), 'attendances', ['session_id'], unique=False)
    op.create_index(
        'uq_attendances_one_active',
        'attendances',
        ['profile_id'],
        unique=True,
        postgresql_where=sa.text("status = 'active' AND exited_at IS NULL"),
    )

    op.create_table(
        'interactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('attendance_id', sa.Integer(), nullable=True),
        sa.Column('sender_id', sa.String(length=64), nullable=False),
        sa.Column('receiver_id', sa.String(length=64), nullable=False),
        sa.Column('interaction_type', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('message', sa.String(length=240), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('sender_id <> receiver_id', name='ck_interactions_not_self'),
        sa.ForeignKeyConstraint(['attendance_id'], ['attendances.id']),
        sa.ForeignKeyConstraint(['receiver_id'], ['profiles.id']),
        sa.ForeignKeyConstraint(['sender_id'], ['profiles.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_interactions_attendance_id'), 'interactions', ['attendance_id'], unique=False)
    op.create_index(op.f('ix_interactions_sender_id'), 'interactions', ['sender_id'], unique=False)
    op.create_index(op.f('ix_interactions_receiver_id'), 'interactions', ['receiver_id'], unique=False)
    op.create_index('ix_interactions_pair_created', 'interactions', ['sender_id', 'receiver_id', 'created_at'], unique=False)
    op.create_index(
        'uq_interactions_one_pending',
        'interactions',
        ['sender_id', 'receiver_id', 'interaction_type'],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        'matches',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('interaction_id', sa.Integer(), nullable=False),
        sa.Column('profile_a', sa.String(length=64), nullable=False),
        sa.Column('profile_b', sa.String(length=64), nullable=False),
        sa.Column('contact_link', sa.String(length=1000), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('profile_a < profile_b', name='ck_matches_canonical'),
        sa.ForeignKeyConstraint(['interaction_id'], ['interactions.id']),
        sa.ForeignKeyConstraint(['profile_a'], ['profiles.id']),
        sa.ForeignKeyConstraint(['profile_b'], ['profiles.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('profile_a', 'profile_b', name='uq_matches_pair'),
    )
    op.create_index(op.f('ix_matches_interaction_id'), 'matches', ['interaction_id'], unique=False)
    op.create_index(op.f('ix_matches_profile_a'), 'matches', ['profile_a'], unique=False)
    op.create_index(op.f('ix_matches_profile_b'), 'matches', ['profile_b'], unique=False)

    op.create_table(
        'blocks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('blocker_id', sa.String(length=64), nullable=False),
        sa.Column('blocked_id', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['blocked_id'], ['profiles.id']),
        sa.ForeignKeyConstraint(['blocker_id'], ['profiles.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('blocker_id', 'blocked_id', name='uq_blocks_pair'),
    )
    op.create_index(op.f('ix_blocks_blocker_id'), 'blocks', ['blocker_id'], unique=False)
    op.create_index(op.f('ix_blocks_blocked_id'), 'blocks', ['blocked_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_blocks_blocked_id'), table_name='blocks')
    op.drop_index(op.f('ix_blocks_blocker_id'), table_name='blocks')
    op.drop_table('blocks')

    op.drop_index(op.f('ix_matches_profile_b'), table_name='matches')
    op.drop_index(op.f('ix_matches_profile_a'), table_name='matches')
    op.drop_index(op.f('ix_matches_interaction_id'), table_name='matches')
    op.drop_table('matches')

    op.drop_index('uq_interactions_one_pending', table_name='interactions')
    op.drop_index('ix_interactions_pair_created', table_name='interactions')
    op.drop_index(op.f('ix_interactions_receiver_id'), table_name='interactions')
    op.drop_index(op.f('ix_interactions_sender_id'), table_name='interactions')
    op.drop_index(op.f('ix_interactions_attendance_id'), table_name='interactions')
    op.drop_table('interactions')

    op.drop_index('uq_attendances_one_active', table_name='attendances')
    op.drop_index(op.f('ix_attendances_session_id'), table_name='attendances')
    op.drop_index(op.f('ix_attendances_venue_id'), table_name='attendances')
    op.drop_index(op.f('ix_attendances_profile_id'), table_name='attendances')
    op.drop_table('attendances')

    op.drop_index('uq_session_metadata_one_active', table_name='session_metadata')
    op.drop_index(op.f('ix_session_metadata_venue_id'), table_name='session_metadata')
    op.drop_table('session_metadata')

    op.drop_index(op.f('ix_venue_members_profile_id'), table_name='venue_members')
    op.drop_index(op.f('ix_venue_members_venue_id'), table_name='venue_members')
    op.drop_table('venue_members')

    op.drop_index(op.f('ix_venues_slug'), table_name='venues')
    op.drop_table('venues')

    op.drop_table('profiles')
