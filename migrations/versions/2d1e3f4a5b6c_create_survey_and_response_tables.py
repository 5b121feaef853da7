"""create template, survey and response tables

Revision ID: 2d1e3f4a5b6c
Revises: 1c0d2e3f4a5b
Create Date: 2026-01-31 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '2d1e3f4a5b6c'
down_revision = '1c0d2e3f4a5b'
branch_labels = None
depends_on = None

JSON_PAYLOAD = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade():
    op.create_table(
        'survey_templates',
        sa.Column('template_id', sa.String(length=36), nullable=False),
        sa.Column('company_id', sa.String(length=36), nullable=True),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('type', sa.String(length=20), nullable=False, server_default='custom'),
        sa.Column('is_global', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_anonymous', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('default_settings', JSON_PAYLOAD, nullable=True),
        sa.Column('use_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.company_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.user_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('template_id')
    )
    op.create_index('ix_survey_templates_company_id', 'survey_templates', ['company_id'])
    op.create_index('ix_survey_templates_category', 'survey_templates', ['category'])
    op.create_index('ix_survey_templates_is_global', 'survey_templates', ['is_global'])

    op.create_table(
        'template_questions',
        sa.Column('question_id', sa.String(length=36), nullable=False),
        sa.Column('template_id', sa.String(length=36), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('options', JSON_PAYLOAD, nullable=True),
        sa.Column('is_required', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['template_id'], ['survey_templates.template_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('question_id'),
        sa.UniqueConstraint('template_id', 'order_index', name='uq_template_question_order')
    )
    op.create_index('ix_template_questions_template_id', 'template_questions', ['template_id'])

    op.create_table(
        'surveys',
        sa.Column('survey_id', sa.String(length=36), nullable=False),
        sa.Column('company_id', sa.String(length=36), nullable=True),
        sa.Column('site_id', sa.String(length=36), nullable=True),
        sa.Column('department_id', sa.String(length=36), nullable=True),
        sa.Column('created_by', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('is_public', sa.Boolean(), nullable=True),
        sa.Column('is_anonymous', sa.Boolean(), nullable=True),
        sa.Column('default_language', sa.String(length=10), nullable=True),
        sa.Column('settings', JSON_PAYLOAD, nullable=True),
        sa.Column('starts_at', sa.DateTime(), nullable=True),
        sa.Column('ends_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.company_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['site_id'], ['sites.site_id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['department_id'], ['departments.department_id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by'], ['users.user_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('survey_id')
    )
    op.create_index('ix_surveys_company_id', 'surveys', ['company_id'])
    op.create_index('ix_surveys_site_id', 'surveys', ['site_id'])
    op.create_index('ix_surveys_department_id', 'surveys', ['department_id'])
    op.create_index('ix_surveys_created_by', 'surveys', ['created_by'])
    op.create_index('ix_surveys_status', 'surveys', ['status'])

    op.create_table(
        'questions',
        sa.Column('question_id', sa.String(length=36), nullable=False),
        sa.Column('survey_id', sa.String(length=36), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('options', JSON_PAYLOAD, nullable=True),
        sa.Column('is_required', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['survey_id'], ['surveys.survey_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('question_id'),
        sa.UniqueConstraint('survey_id', 'order_index', name='uq_question_order')
    )
    op.create_index('ix_questions_survey_id', 'questions', ['survey_id'])

    op.create_table(
        'responses',
        sa.Column('response_id', sa.String(length=36), nullable=False),
        sa.Column('survey_id', sa.String(length=36), nullable=False),
        sa.Column('respondent_id', sa.String(length=36), nullable=True),
        sa.Column('anonymous_token', sa.String(length=255), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('language_used', sa.String(length=10), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='started'),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['survey_id'], ['surveys.survey_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['respondent_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('response_id')
    )
    op.create_index('ix_responses_survey_id', 'responses', ['survey_id'])
    op.create_index('ix_responses_respondent_id', 'responses', ['respondent_id'])
    op.create_index('ix_responses_anonymous_token', 'responses', ['anonymous_token'])
    op.create_index('ix_responses_status', 'responses', ['status'])

    op.create_table(
        'answers',
        sa.Column('answer_id', sa.String(length=36), nullable=False),
        sa.Column('response_id', sa.String(length=36), nullable=False),
        sa.Column('question_id', sa.String(length=36), nullable=False),
        sa.Column('value', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['response_id'], ['responses.response_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['question_id'], ['questions.question_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('answer_id'),
        sa.UniqueConstraint('response_id', 'question_id', name='uq_answer_response_question')
    )
    op.create_index('ix_answers_response_id', 'answers', ['response_id'])
    op.create_index('ix_answers_question_id', 'answers', ['question_id'])


def downgrade():
    op.drop_table('answers')
    op.drop_table('responses')
    op.drop_table('questions')
    op.drop_table('surveys')
    op.drop_table('template_questions')
    op.drop_table('survey_templates')
