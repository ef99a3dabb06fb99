"""Initial schema: users, learners, subscriptions, pricing settings, curriculum, quiz progress, quote requests

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSON


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


USER_ROLE = sa.Enum('USER', 'TRIAL', 'ADMIN', 'SUPER_ADMIN', name='userrole')
PLAN_TYPE = sa.Enum('ALL_ACCESS', 'COMBO', 'SINGLE', name='plantype')
BILLING_CYCLE = sa.Enum('MONTHLY', 'YEARLY', name='billingcycle')
SUBSCRIPTION_STATUS = sa.Enum('TRIAL', 'ACTIVE', 'UPCOMING', 'FROZEN', 'CANCELLED', name='subscriptionstatus')
QUESTION_TYPE = sa.Enum('TEXT', 'CLICK', 'DRAG', 'DRAW', 'PAINT', name='questiontype')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('password_hash', sa.String(255)),
        sa.Column('role', USER_ROLE, nullable=False),
        sa.Column('is_active', sa.Boolean, default=True),
        sa.Column('has_subscription', sa.Boolean, default=False),
        sa.Column('last_login', sa.DateTime),
        *_timestamps(),
    )

    op.create_table(
        'learners',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('grade', sa.String(50), nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )

    op.create_table(
        'subscriptions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('plan_type', PLAN_TYPE, nullable=False),
        sa.Column('billing_cycle', BILLING_CYCLE, nullable=False),
        sa.Column('children_count', sa.Integer, nullable=False, server_default='1'),
        sa.Column('selected_subject', sa.String(100)),
        sa.Column('amount_paid', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('payment_reference', sa.String(100), unique=True),
        sa.Column('card_last_four', sa.String(4)),
        sa.Column('status', SUBSCRIPTION_STATUS, nullable=False, index=True),
        sa.Column('start_date', sa.DateTime, nullable=False),
        sa.Column('end_date', sa.DateTime, nullable=False),
        sa.Column('trial_end_date', sa.DateTime),
        sa.Column('auto_renew', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('next_check_at', sa.DateTime, index=True),
        *_timestamps(),
        sa.CheckConstraint('children_count >= 1', name='ck_subscriptions_children_count'),
        sa.CheckConstraint('end_date >= start_date', name='ck_subscriptions_dates'),
    )

    op.create_table(
        'subscription_settings',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('value', sa.Text, nullable=False),
        sa.Column('updated_at', sa.DateTime),
    )

    op.create_table(
        'grades',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('description', sa.Text),
        sa.Column('order_index', sa.Integer, default=0),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id')),
        *_timestamps(),
    )

    op.create_table(
        'subjects',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('grade_id', UUID(as_uuid=True), sa.ForeignKey('grades.id'), nullable=False, index=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text),
        sa.Column('is_active', sa.Boolean, default=True),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id')),
        *_timestamps(),
    )

    op.create_table(
        'topics',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('subject_id', UUID(as_uuid=True), sa.ForeignKey('subjects.id'), nullable=False, index=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text),
        sa.Column('order_index', sa.Integer, default=0),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id')),
        *_timestamps(),
    )

    op.create_table(
        'sections',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('topic_id', UUID(as_uuid=True), sa.ForeignKey('topics.id'), nullable=False, index=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text),
        sa.Column('order_index', sa.Integer, default=0),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id')),
        *_timestamps(),
    )

    op.create_table(
        'questions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('topic_id', UUID(as_uuid=True), sa.ForeignKey('topics.id'), nullable=False, index=True),
        sa.Column('section_id', UUID(as_uuid=True), sa.ForeignKey('sections.id'), index=True),
        sa.Column('question_type', QUESTION_TYPE, nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('options', JSON),
        sa.Column('correct_answer', sa.Text),
        sa.Column('explanation', sa.Text),
        sa.Column('images', JSON),
        sa.Column('explanation_image', sa.String(500)),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id')),
        *_timestamps(),
    )

    op.create_table(
        'quiz_progress',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('topic_id', UUID(as_uuid=True), sa.ForeignKey('topics.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('question_id', UUID(as_uuid=True), sa.ForeignKey('questions.id')),
        sa.Column('score', sa.Integer, default=0),
        sa.Column('total_questions', sa.Integer, nullable=False, server_default='0'),
        sa.Column('completed_questions', sa.Integer, default=0),
        sa.Column('status', sa.String(20), index=True),
        sa.Column('time_spent_seconds', sa.Integer, default=0),
        sa.Column('answers', JSON),
        sa.Column('started_at', sa.DateTime),
        sa.Column('completed_at', sa.DateTime),
    )

    op.create_table(
        'school_quote_requests',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone_number', sa.String(30), nullable=False),
        sa.Column('position', sa.String(100)),
        sa.Column('school_name', sa.String(255), nullable=False),
        sa.Column('address', sa.Text),
        sa.Column('town_city', sa.String(100)),
        sa.Column('lga', sa.String(100)),
        sa.Column('country', sa.String(100)),
        sa.Column('school_type', sa.String(50), nullable=False),
        sa.Column('subjects', JSON),
        sa.Column('student_year_levels', sa.String(200)),
        sa.Column('number_of_students', sa.Integer, default=0),
        sa.Column('number_of_teachers', sa.Integer, default=0),
        sa.Column('implementation_plan', sa.Text),
        sa.Column('marketing_consent', sa.Boolean, default=False),
        sa.Column('status', sa.String(20)),
        sa.Column('notes', sa.Text),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table('school_quote_requests')
    op.drop_table('quiz_progress')
    op.drop_table('questions')
    op.drop_table('sections')
    op.drop_table('topics')
    op.drop_table('subjects')
    op.drop_table('grades')
    op.drop_table('subscription_settings')
    op.drop_table('subscriptions')
    op.drop_table('learners')
    op.drop_table('users')

    for enum_type in (QUESTION_TYPE, SUBSCRIPTION_STATUS, BILLING_CYCLE, PLAN_TYPE, USER_ROLE):
        enum_type.drop(op.get_bind(), checkfirst=True)
