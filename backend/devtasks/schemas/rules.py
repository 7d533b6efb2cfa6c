"""
Body rule sets for the declarative validator.

Keys are the camelCase JSON field names; order is the order in which
violations are reported.
"""

from devtasks.auth.principal import Role
from devtasks.middleware.validation import FieldRule, FieldType, RuleSet
from devtasks.models.task import TaskPriority

ROLE_VALUES = [role.value for role in Role]
PRIORITY_VALUES = [priority.value for priority in TaskPriority]

LOGIN_RULES: RuleSet = {
    "email": FieldRule(required=True, type=FieldType.EMAIL),
    "password": FieldRule(required=True, type=FieldType.STRING),
}

CREATE_USER_RULES: RuleSet = {
    "email": FieldRule(required=True, type=FieldType.EMAIL, max_length=254),
    "password": FieldRule(required=True, type=FieldType.STRING, min_length=8, max_length=128),
    "firstName": FieldRule(required=True, type=FieldType.STRING, min_length=1, max_length=50),
    "lastName": FieldRule(required=True, type=FieldType.STRING, min_length=1, max_length=50),
    "role": FieldRule(required=True, choices=ROLE_VALUES),
    "department": FieldRule(required=True, type=FieldType.STRING, max_length=100),
    "reportsTo": FieldRule(type=FieldType.STRING, pattern=r"^[0-9a-fA-F]{24}$"),
}

CREATE_PROJECT_RULES: RuleSet = {
    "name": FieldRule(required=True, type=FieldType.STRING, min_length=3, max_length=100),
    "description": FieldRule(required=True, type=FieldType.STRING, max_length=1000),
    "projectManager": FieldRule(required=True, type=FieldType.STRING, pattern=r"^[0-9a-fA-F]{24}$"),
    "assistantProjectManager": FieldRule(type=FieldType.STRING, pattern=r"^[0-9a-fA-F]{24}$"),
    "teamLeader": FieldRule(type=FieldType.STRING, pattern=r"^[0-9a-fA-F]{24}$"),
    "startDate": FieldRule(required=True, type=FieldType.DATE),
    "endDate": FieldRule(type=FieldType.DATE),
    "estimatedHours": FieldRule(required=True, type=FieldType.NUMBER, min=0),
    "budget": FieldRule(type=FieldType.NUMBER, min=0),
}

CREATE_TASK_RULES: RuleSet = {
    "title": FieldRule(required=True, type=FieldType.STRING, min_length=3, max_length=200),
    "description": FieldRule(required=True, type=FieldType.STRING, max_length=2000),
    "priority": FieldRule(choices=PRIORITY_VALUES),
    "project": FieldRule(required=True, type=FieldType.STRING, pattern=r"^[0-9a-fA-F]{24}$"),
    "assignedTo": FieldRule(required=True, type=FieldType.STRING, pattern=r"^[0-9a-fA-F]{24}$"),
    "estimatedHours": FieldRule(required=True, type=FieldType.NUMBER, min=0, max=1000),
    "dueDate": FieldRule(required=True, type=FieldType.DATE),
}
