# jobboard/core/roles.py
from enum import Enum
from typing import FrozenSet


class Role(str, Enum):
    USER = "User"
    COMPANY_HR = "Company_HR"
    ADMIN = "admin"


AllowSet = FrozenSet[Role]

# Named allow-sets used at route composition
USER: AllowSet = frozenset({Role.USER})
COMPANY_HR: AllowSet = frozenset({Role.COMPANY_HR})
USER_COMPANY_HR: AllowSet = frozenset({Role.USER, Role.COMPANY_HR})
ALL: AllowSet = frozenset(Role)


def is_allowed(role: Role, allowed: AllowSet) -> bool:
    return role in allowed
