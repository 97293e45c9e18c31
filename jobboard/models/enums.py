# jobboard/models/enums.py
from enum import Enum


class AccountStatus(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"


class JobLocation(str, Enum):
    ONSITE = "onsite"
    REMOTELY = "remotely"
    HYBRID = "hybrid"


class WorkingTime(str, Enum):
    PART_TIME = "part-time"
    FULL_TIME = "full-time"


class SeniorityLevel(str, Enum):
    JUNIOR = "Junior"
    MID_LEVEL = "Mid-Level"
    SENIOR = "Senior"
    TEAM_LEAD = "Team-Lead"
    CTO = "CTO"


class CompanySize(str, Enum):
    XS = "1-10"
    S = "11-20"
    M = "21-50"
    L = "51-100"
    XL = "101-200"
    XXL = "201-500"
    XXXL = "501-1000"
    HUGE = "1000+"
