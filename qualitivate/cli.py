"""
Admin commands, run through the Flask CLI:

    flask create-super-admin admin@example.com --password 'Secret123'
    flask seed-templates
"""
import click
from flask.cli import with_appcontext
from werkzeug.security import generate_password_hash

from qualitivate.extensions import db
from qualitivate.models import User, SurveyTemplate, TemplateQuestion

GLOBAL_TEMPLATES = [
    {
        "name": "Employee NPS Survey",
        "description": "Measure employee satisfaction and loyalty with the standard Net Promoter Score methodology.",
        "category": "Employee Feedback",
        "type": "nps",
        "is_anonymous": True,
        "questions": [
            ("nps", "How likely are you to recommend this company as a place to work to a friend or colleague?", {}, True),
            ("text_long", "What is the primary reason for your score?", {}, True),
            ("text_long", "What could we do to improve your experience at this company?", {}, False),
        ],
    },
    {
        "name": "Customer Satisfaction Survey",
        "description": "Gather comprehensive feedback on customer satisfaction with your products or services.",
        "category": "Customer Satisfaction",
        "type": "custom",
        "is_anonymous": False,
        "questions": [
            ("rating_scale", "Overall, how satisfied are you with our product/service?", {"min": 1, "max": 5}, True),
            ("multiple_choice", "How often do you use our product/service?",
             {"choices": ["Daily", "Weekly", "Monthly", "Rarely", "First time"]}, True),
            ("multiple_choice", "Which aspects of our product/service do you value the most? (Select all that apply)",
             {"choices": ["Quality", "Price", "Customer Support", "Ease of Use", "Features", "Reliability"],
              "allow_multiple": True}, True),
            ("nps", "How likely are you to recommend our product/service to others?", {}, True),
            ("text_long", "What improvements would you like to see in our product/service?", {}, False),
        ],
    },
    {
        "name": "Product Feedback Survey",
        "description": "Collect detailed feedback on product features, usability, and improvements.",
        "category": "Product Feedback",
        "type": "custom",
        "is_anonymous": False,
        "questions": [
            ("rating_scale", "How would you rate the overall quality of the product?", {"min": 1, "max": 5}, True),
            ("rating_scale", "How easy is it to use the product?", {"min": 1, "max": 5}, True),
            ("text_long", "What features would you like us to add?", {}, False),
            ("text_long", "Any bugs or issues you have encountered?", {}, False),
        ],
    },
]


@click.command('create-super-admin')
@click.argument('email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--first-name', default='Super')
@click.option('--last-name', default='Admin')
@with_appcontext
def create_super_admin(email, password, first_name, last_name):
    """Create a super_admin account, or promote an existing user to one."""
    email = email.strip().lower()
    user = User.query.filter_by(email=email).first()
    if user:
        user.role = 'super_admin'
        user.is_active = True
        user.password_hash = generate_password_hash(password)
        click.echo(f"Promoted existing user {email} to super_admin")
    else:
        user = User(
            email=email,
            password_hash=generate_password_hash(password),
            first_name=first_name,
            last_name=last_name,
            role='super_admin',
            company_id=None,
            is_active=True,
        )
        db.session.add(user)
        click.echo(f"Created super_admin {email}")
    db.session.commit()


def seed_global_templates():
    """Insert the built-in global templates that are not there yet. Returns the names added."""
    added = []
    for seed in GLOBAL_TEMPLATES:
        exists = SurveyTemplate.query.filter_by(name=seed["name"], is_global=True).first()
        if exists:
            continue
        template = SurveyTemplate(
            company_id=None,
            created_by=None,
            name=seed["name"],
            description=seed["description"],
            category=seed["category"],
            type=seed["type"],
            is_global=True,
            is_anonymous=seed["is_anonymous"],
            default_settings={},
            use_count=0,
        )
        db.session.add(template)
        db.session.flush()
        for index, (qtype, content, options, required) in enumerate(seed["questions"]):
            db.session.add(TemplateQuestion(
                template_id=template.template_id,
                type=qtype,
                content=content,
                options=options,
                is_required=required,
                order_index=index,
            ))
        added.append(seed["name"])
    db.session.commit()
    return added


@click.command('seed-templates')
@with_appcontext
def seed_templates():
    """Seed the global survey templates (safe to run repeatedly)."""
    added = seed_global_templates()
    if added:
        for name in added:
            click.echo(f"Seeded template: {name}")
    else:
        click.echo("Global templates already exist, nothing to seed.")


def register_commands(app):
    app.cli.add_command(create_super_admin)
    app.cli.add_command(seed_templates)
