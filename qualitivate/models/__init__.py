from qualitivate.models.company import Company
from qualitivate.models.site import Site
from qualitivate.models.department import Department
from qualitivate.models.user import User
from qualitivate.models.template import SurveyTemplate, TemplateQuestion
from qualitivate.models.survey import Survey, Question
from qualitivate.models.response import Response, Answer

__all__ = [
    'Company',
    'Site',
    'Department',
    'User',
    'SurveyTemplate',
    'TemplateQuestion',
    'Survey',
    'Question',
    'Response',
    'Answer',
]
