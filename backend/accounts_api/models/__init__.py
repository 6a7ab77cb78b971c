from accounts_api.models.account import Account, Role
from accounts_api.models.refresh_token import RefreshToken
from accounts_api.models.department import Department
from accounts_api.models.employee import Employee
from accounts_api.models.workflow import Workflow
from accounts_api.models.request import Request, RequestItem

__all__ = [
    "Account",
    "Role",
    "RefreshToken",
    "Department",
    "Employee",
    "Workflow",
    "Request",
    "RequestItem",
]
