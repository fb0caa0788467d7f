"""initial schema: users, languages, bookmarks, responses, daily summaries, community

Revision ID: 0001
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def _id():
    return sa.Column('id', sa.String(32), primary_key=True)


def _timestamps(updated: bool = True):
    cols = [sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False)]
    if updated:
        cols.append(sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False))
    return cols


def upgrade() -> None:
    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('alias', sa.String(50), nullable=True, comment='コミュニティ公開用エイリアス'),
        sa.Column('subscribed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('subscription_email', sa.String(255), nullable=True),
        sa.Column('email_frequency', sa.Enum('daily', 'weekly', 'none', name='email_frequency'),
                  nullable=False, server_default='daily'),
        sa.Column('email_subscribed_at', sa.DateTime(), nullable=True),
        sa.Column('unsubscribed_at', sa.DateTime(), nullable=True),
        sa.Column('last_email_sent', sa.DateTime(), nullable=True),
        sa.Column('deliverable', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint('alias'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'languages',
        _id(),
        sa.Column('code', sa.String(10), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index('ix_languages_code', 'languages', ['code'], unique=True)

    op.create_table(
        'user_language_preferences',
        _id(),
        sa.Column('user_id', sa.String(32), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('language_id', sa.String(32), sa.ForeignKey('languages.id', ondelete='CASCADE'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('user_id'),
    )

    op.create_table(
        'user_language_subscriptions',
        _id(),
        sa.Column('user_id', sa.String(32), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('language_id', sa.String(32), sa.ForeignKey('languages.id', ondelete='CASCADE'), nullable=False),
        sa.Column('subscribed', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('email_frequency', sa.Enum('daily', 'weekly', name='language_email_frequency'),
                  nullable=False, server_default='daily'),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'language_id', name='uq_user_language_subscription'),
    )
    op.create_index('ix_user_language_subscriptions_user_id', 'user_language_subscriptions', ['user_id'])

    op.create_table(
        'bookmarks',
        _id(),
        sa.Column('user_id', sa.String(32), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('language_id', sa.String(32), sa.ForeignKey('languages.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index('ix_bookmarks_user_id', 'bookmarks', ['user_id'])
    op.create_index('ix_bookmarks_language_id', 'bookmarks', ['language_id'])

    # community_response_id のFKは community_responses 作成後に追加 (相互参照)
    op.create_table(
        'responses',
        _id(),
        sa.Column('user_id', sa.String(32), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('language_id', sa.String(32), sa.ForeignKey('languages.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('rank', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_paused', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('breakdown', sa.Text(), nullable=True),
        sa.Column('mobile_breakdown', sa.Text(), nullable=True),
        sa.Column('furigana', sa.Text(), nullable=True),
        sa.Column('is_furigana_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_phonetic_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_kana_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('response_type', sa.String(20), nullable=True),
        sa.Column('audio', sa.Text(), nullable=True),
        sa.Column('audio_mime_type', sa.String(50), nullable=True),
        sa.Column('source', sa.Enum('local', 'imported', name='response_source'),
                  nullable=False, server_default='local'),
        sa.Column('community_response_id', sa.String(32), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('rank IN (1, 2, 3)', name='ck_responses_rank'),
    )
    op.create_index('ix_responses_user_id', 'responses', ['user_id'])
    op.create_index('ix_responses_language_id', 'responses', ['language_id'])
    # サマリー抽出: (user, language, rank) で絞り込む
    op.create_index('ix_responses_user_language_rank', 'responses', ['user_id', 'language_id', 'rank'])

    op.create_table(
        'response_bookmarks',
        sa.Column('response_id', sa.String(32), sa.ForeignKey('responses.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('bookmark_id', sa.String(32), sa.ForeignKey('bookmarks.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'daily_summaries',
        _id(),
        sa.Column('user_id', sa.String(32), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('language_id', sa.String(32), sa.ForeignKey('languages.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_current', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('user_id', 'language_id', 'is_current', name='uq_daily_summary_current'),
    )
    op.create_index('ix_daily_summaries_user_id', 'daily_summaries', ['user_id'])
    op.create_index('ix_daily_summaries_language_id', 'daily_summaries', ['language_id'])

    op.create_table(
        'daily_summary_responses',
        sa.Column('daily_summary_id', sa.String(32), sa.ForeignKey('daily_summaries.id', ondelete='CASCADE'),
                  primary_key=True),
        sa.Column('response_id', sa.String(32), sa.ForeignKey('responses.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'community_responses',
        _id(),
        sa.Column('original_response_id', sa.String(32), sa.ForeignKey('responses.id', ondelete='SET NULL'),
                  nullable=True),
        sa.Column('creator_user_id', sa.String(32), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('creator_alias', sa.String(50), nullable=False),
        sa.Column('bookmark_title', sa.String(255), nullable=False),
        sa.Column('language_id', sa.String(32), sa.ForeignKey('languages.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('breakdown', sa.Text(), nullable=True),
        sa.Column('mobile_breakdown', sa.Text(), nullable=True),
        sa.Column('furigana', sa.Text(), nullable=True),
        sa.Column('audio', sa.Text(), nullable=True),
        sa.Column('audio_mime_type', sa.String(50), nullable=True),
        sa.Column('response_type', sa.String(20), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('import_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('view_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('shared_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('original_response_id'),
    )
    op.create_index('ix_community_responses_creator_user_id', 'community_responses', ['creator_user_id'])
    op.create_index('ix_community_responses_language_id', 'community_responses', ['language_id'])

    op.create_foreign_key(
        'fk_responses_community_response_id', 'responses', 'community_responses',
        ['community_response_id'], ['id'], ondelete='SET NULL',
    )

    op.create_table(
        'community_imports',
        _id(),
        sa.Column('user_id', sa.String(32), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('community_response_id', sa.String(32),
                  sa.ForeignKey('community_responses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('imported_response_id', sa.String(32), sa.ForeignKey('responses.id', ondelete='CASCADE'),
                  nullable=False),
        sa.Column('imported_bookmark_id', sa.String(32), sa.ForeignKey('bookmarks.id', ondelete='CASCADE'),
                  nullable=False),
        sa.Column('was_bookmark_created', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('imported_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('user_id', 'community_response_id', name='uq_community_import'),
    )
    op.create_index('ix_community_imports_user_id', 'community_imports', ['user_id'])
    op.create_index('ix_community_imports_community_response_id', 'community_imports', ['community_response_id'])


def downgrade() -> None:
    op.drop_table('community_imports')
    op.drop_constraint('fk_responses_community_response_id', 'responses', type_='foreignkey')
    op.drop_table('community_responses')
    op.drop_table('daily_summary_responses')
    op.drop_table('daily_summaries')
    op.drop_table('response_bookmarks')
    op.drop_table('responses')
    op.drop_table('bookmarks')
    op.drop_table('user_language_subscriptions')
    op.drop_table('user_language_preferences')
    op.drop_table('languages')
    op.drop_table('users')
