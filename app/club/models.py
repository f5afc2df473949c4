"""
Club Management Models

Pydantic request/response models for teams, groups, players, guardians,
events, attendance, match statistics, billing, analytics and role management
"""

import datetime as dt
import re
from datetime import date
from typing import Optional, List, Dict, Any, Union
from enum import Enum
from pydantic import BaseModel, Field, field_validator, model_validator

from app.auth.validation import validate_uk_phone, validate_uk_postcode


AGE_GROUP_PATTERN = re.compile(r"^U\d{1,2}$")
TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")
MIN_SEASON_YEAR = 2020


# =============================================
# Enums
# =============================================

class UserRole(str, Enum):
    """Club role"""
    parent = "parent"     # guardian of one or more players
    coach = "coach"       # runs sessions for assigned teams
    manager = "manager"   # team admin, approvals
    admin = "admin"       # full access


class ApprovalStatus(str, Enum):
    """Registration approval state"""
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class EventType(str, Enum):
    """Event type"""
    training = "training"
    match = "match"
    social = "social"
    meeting = "meeting"
    other = "other"


class RsvpStatus(str, Enum):
    """Stated attendance intent"""
    going = "going"
    maybe = "maybe"
    not_going = "not_going"


class AttendanceStatus(str, Enum):
    """Recorded attendance"""
    present = "present"
    absent = "absent"
    injured = "injured"
    late = "late"
    not_marked = "not_marked"


class PaymentStatus(str, Enum):
    """Payment state"""
    paid = "paid"
    pending = "pending"
    failed = "failed"
    refunded = "refunded"


class SubscriptionStatus(str, Enum):
    """Subscription state"""
    active = "active"
    past_due = "past_due"
    paused = "paused"
    cancelled = "cancelled"


class RecurrenceType(str, Enum):
    """Recurring event frequency"""
    daily = "daily"
    weekly = "weekly"
    biweekly = "biweekly"
    monthly = "monthly"


class UpdateScope(str, Enum):
    """Which occurrences of a series an edit applies to"""
    this_only = "this_only"
    this_and_future = "this_and_future"
    all_series = "all_series"


class StaffType(str, Enum):
    """Team staff member type"""
    coach = "coach"
    manager = "manager"


def _check_season_year(v: Optional[int]) -> Optional[int]:
    if v is None:
        return v
    max_year = date.today().year + 2
    if v < MIN_SEASON_YEAR or v > max_year:
        raise ValueError(f"Season year must be between {MIN_SEASON_YEAR} and {max_year}")
    return v


def _check_age_group(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().upper()
    if not AGE_GROUP_PATTERN.match(v):
        raise ValueError("Age group must look like U12")
    return v


def _check_time(v: Optional[str]) -> Optional[str]:
    if v is None or v == "":
        return None
    if not TIME_PATTERN.match(v):
        raise ValueError("Time must be HH:MM")
    return v


# =============================================
# Team Models
# =============================================

class TeamCreate(BaseModel):
    """Create a team"""
    name: str = Field(..., min_length=2, max_length=100)
    age_group: str
    season_year: Optional[int] = None  # defaults to the current year
    description: Optional[str] = None
    group_id: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Team name must be at least 2 characters")
        return v

    @field_validator('age_group')
    @classmethod
    def validate_age_group(cls, v):
        return _check_age_group(v)

    @field_validator('season_year')
    @classmethod
    def validate_season_year(cls, v):
        return _check_season_year(v)


class TeamUpdate(BaseModel):
    """Partial team update"""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    age_group: Optional[str] = None
    season_year: Optional[int] = None
    description: Optional[str] = None
    group_id: Optional[str] = None

    @field_validator('age_group')
    @classmethod
    def validate_age_group(cls, v):
        return _check_age_group(v)

    @field_validator('season_year')
    @classmethod
    def validate_season_year(cls, v):
        return _check_season_year(v)


class TeamResponse(BaseModel):
    """Team view-model"""
    id: str
    name: str
    age_group: Optional[str] = None
    season_year: Optional[int] = None
    description: Optional[str] = None
    group_id: Optional[str] = None
    archived: bool = False
    player_count: int = 0


class TeamStaffAdd(BaseModel):
    """Add a coach or manager to a team"""
    member_id: str
    member_type: StaffType = StaffType.coach


class TeamStaffMember(BaseModel):
    """Team staff entry"""
    id: str
    member_id: str
    member_name: str = ""
    member_type: str
    is_active: bool = True
    assigned_at: Optional[str] = None


# =============================================
# Group Models
# =============================================

class GroupCreate(BaseModel):
    """Create a group of teams"""
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = None
    avatar_image: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Group name must be at least 2 characters")
        return v


class GroupUpdate(BaseModel):
    """Partial group update"""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = None
    avatar_image: Optional[str] = None


class GroupResponse(BaseModel):
    """Group view-model"""
    id: str
    name: str
    description: Optional[str] = None
    avatar_image: Optional[str] = None


class GroupTeam(BaseModel):
    id: str
    name: str
    age_group: Optional[str] = None


class GroupStaffMember(BaseModel):
    """Guardian with a role in a group"""
    guardian_id: str
    name: str = ""
    email: Optional[str] = None
    role: str


class GroupDetail(GroupResponse):
    """Group with its teams and staff"""
    teams: List[GroupTeam] = Field(default_factory=list)
    staff: List[GroupStaffMember] = Field(default_factory=list)


class GroupStaffAdd(BaseModel):
    """Give a guardian a role in a group"""
    guardian_id: str
    role: str = Field(default="coordinator", min_length=2, max_length=50)


# =============================================
# Player Models
# =============================================

class PlayerCreate(BaseModel):
    """Create a player"""
    name: str = Field(..., min_length=2, max_length=101)
    date_of_birth: date
    medical_info: Optional[str] = None
    notes: Optional[str] = None
    profile_image: Optional[str] = None
    team_id: Optional[str] = None
    guardian_id: Optional[str] = None

    @field_validator('date_of_birth')
    @classmethod
    def validate_date_of_birth(cls, v):
        if v > date.today():
            raise ValueError("Date of birth cannot be in the future")
        return v


class PlayerUpdate(BaseModel):
    """Partial player update"""
    name: Optional[str] = Field(None, min_length=2, max_length=101)
    date_of_birth: Optional[date] = None
    medical_info: Optional[str] = None
    notes: Optional[str] = None
    profile_image: Optional[str] = None


class PlayerResponse(BaseModel):
    """Player view-model"""
    id: str
    name: str
    date_of_birth: Optional[str] = None
    age_group: Optional[str] = None
    medical_info: Optional[str] = None
    notes: Optional[str] = None
    profile_image: Optional[str] = None
    status: str = ApprovalStatus.pending.value
    team_ids: List[str] = []
    guardian_ids: List[str] = []


class TeamAssignment(BaseModel):
    """Player to team"""
    team_id: str


class RejectionRequest(BaseModel):
    """Reject with a reason"""
    reason: str = Field(..., min_length=1, max_length=500)


# =============================================
# Guardian Models
# =============================================

class GuardianUpdate(BaseModel):
    """Guardian contact details"""
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    emergency_contact_relationship: Optional[str] = None

    @field_validator('phone', 'emergency_contact_phone')
    @classmethod
    def validate_phone(cls, v):
        if v is None:
            return v
        return validate_uk_phone(v)

    @field_validator('postcode')
    @classmethod
    def validate_postcode(cls, v):
        return validate_uk_postcode(v)


class GuardianResponse(BaseModel):
    """Guardian view-model"""
    id: str
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    relationship: Optional[str] = None
    approval_status: str = ApprovalStatus.pending.value
    rejection_reason: Optional[str] = None
    player_ids: List[str] = []


class GuardianDetail(GuardianResponse):
    """Guardian with linked players"""
    address: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    players: List[PlayerResponse] = []


class GuardianPlayerLink(BaseModel):
    """Link a guardian to a player"""
    player_id: str


class PendingApprovals(BaseModel):
    """Registrations waiting for review"""
    guardians: List[GuardianResponse]
    players: List[PlayerResponse]
    total: int


# =============================================
# Event Models
# =============================================

class EventCreate(BaseModel):
    """Create an event"""
    name: str = Field(..., min_length=3, max_length=200)
    date: dt.date
    time: Optional[str] = None  # HH:MM
    location: Optional[str] = None
    notes: Optional[str] = None
    event_type: EventType = EventType.training
    team_id: Optional[str] = None
    is_home: Optional[bool] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Event title must be at least 3 characters")
        return v

    @field_validator('date')
    @classmethod
    def validate_date(cls, v):
        if v < date.today():
            raise ValueError("Event date cannot be in the past")
        return v

    @field_validator('time')
    @classmethod
    def validate_time(cls, v):
        return _check_time(v)


class EventUpdate(BaseModel):
    """Partial event update"""
    name: Optional[str] = Field(None, min_length=3, max_length=200)
    date: Optional[dt.date] = None
    time: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    event_type: Optional[EventType] = None
    team_id: Optional[str] = None
    is_home: Optional[bool] = None

    @field_validator('time')
    @classmethod
    def validate_time(cls, v):
        return _check_time(v)


class EventResponse(BaseModel):
    """Event view-model"""
    id: str
    name: str
    date: Optional[str] = None
    time: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    event_type: str = EventType.training.value
    team_id: Optional[str] = None
    is_home: Optional[bool] = None
    parent_event_id: Optional[str] = None
    is_recurring: bool = False


class RecurrencePatternIn(BaseModel):
    """Recurrence rule as submitted by a form"""
    type: RecurrenceType
    interval: int = Field(default=1, ge=1, le=52)
    days_of_week: List[Union[int, str]] = []  # 0=Sunday..6=Saturday, or weekday names
    end_date: Optional[date] = None
    max_occurrences: Optional[int] = Field(default=None, ge=1, le=365)


class RecurringEventCreate(BaseModel):
    """Create a recurring series"""
    event: EventCreate
    pattern: RecurrencePatternIn


class SeriesUpdate(BaseModel):
    """Edit a recurring series"""
    changes: EventUpdate = EventUpdate()
    pattern: Optional[RecurrencePatternIn] = None
    scope: UpdateScope = UpdateScope.all_series


class SeriesResult(BaseModel):
    """Series write result"""
    parent: EventResponse
    occurrence_count: int


class RecurrenceInfo(BaseModel):
    """Event with its recurrence rule"""
    event: EventResponse
    recurrence: Optional[Dict[str, Any]] = None
    occurrences: List[EventResponse] = []


# =============================================
# RSVP / Attendance Models
# =============================================

class RsvpRequest(BaseModel):
    """RSVP for a player"""
    player_id: str
    status: RsvpStatus


class EventResponseRecord(BaseModel):
    """A player's response row for an event"""
    id: str
    event_id: str
    player_id: str
    player_name: str = ""
    rsvp_status: Optional[str] = None
    attendance_status: Optional[str] = None
    attended: Optional[bool] = None
    notes: Optional[str] = None
    response_date: Optional[str] = None
    attendance_marked_at: Optional[str] = None
    pending_sync: bool = False


class RsvpSummary(BaseModel):
    """RSVP counts for one event"""
    event_id: str
    going: int = 0
    maybe: int = 0
    not_going: int = 0


class AttendanceMark(BaseModel):
    """Mark one response"""
    status: AttendanceStatus
    notes: Optional[str] = Field(None, max_length=500)


class BulkAttendance(BaseModel):
    """player_id → status for one event"""
    statuses: Dict[str, AttendanceStatus]


class AttendanceSummary(BaseModel):
    """Attendance counts for one event"""
    event_id: str
    present: int = 0
    absent: int = 0
    injured: int = 0
    late: int = 0
    not_marked: int = 0
    total: int = 0


# =============================================
# Match Statistics Models
# =============================================

class MatchStatsFigures(BaseModel):
    """One player's figures for one match"""
    player_id: str
    event_id: str
    goals: int = Field(default=0, ge=0)
    shot_attempts: int = Field(default=0, ge=0)
    intercepts: int = Field(default=0, ge=0)
    tips: int = Field(default=0, ge=0)
    turnovers_won: int = Field(default=0, ge=0)
    turnovers_lost: int = Field(default=0, ge=0)
    contacts: int = Field(default=0, ge=0)
    obstructions: int = Field(default=0, ge=0)
    footwork_errors: int = Field(default=0, ge=0)
    quarters_played: int = Field(default=0, ge=0, le=4)
    player_of_match_coach: bool = False
    player_of_match_players: bool = False


class MatchStatsRecord(MatchStatsFigures):
    """Record figures; goals are the successful shot attempts"""

    @model_validator(mode="after")
    def validate_shooting(self) -> "MatchStatsRecord":
        if self.goals > self.shot_attempts:
            raise ValueError("Goals cannot exceed shot attempts")
        return self


class MatchStatsResponse(MatchStatsFigures):
    """Stored match statistics row"""
    id: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class PlayerMatchSummary(BaseModel):
    """A player's totals across matches"""
    player_id: str
    total_games: int = 0
    total_goals: int = 0
    total_shot_attempts: int = 0
    shooting_accuracy: float = 0.0
    total_intercepts: int = 0
    total_tips: int = 0
    player_of_match_count: int = 0


# =============================================
# Billing Models
# =============================================

class PaymentRecord(BaseModel):
    """Payment row joined to guardian and player"""
    id: str
    date: Optional[str] = None
    guardian_name: str = ""
    guardian_email: Optional[str] = None
    player_name: str = ""
    amount_pence: int = 0
    amount_display: str = "£0.00"
    currency: str = "GBP"
    status: str
    description: Optional[str] = None
    failure_reason: Optional[str] = None


class BillingStats(BaseModel):
    """Billing dashboard figures (pence)"""
    total_revenue: int = 0
    monthly_recurring_revenue: int = 0
    active_subscriptions: int = 0
    failed_payments: int = 0
    total_revenue_display: str = "£0.00"
    monthly_recurring_revenue_display: str = "£0.00"


class SubscriptionRecord(BaseModel):
    """Subscription view-model"""
    id: str
    guardian_id: Optional[str] = None
    player_id: Optional[str] = None
    status: str
    amount_pence: int = 0
    amount_display: str = "£0.00"
    billing_cycle: Optional[str] = None
    start_date: Optional[str] = None
    next_billing_date: Optional[str] = None
    cancelled_at: Optional[str] = None
    cancellation_reason: Optional[str] = None


class SubscriptionCancel(BaseModel):
    """Cancel a subscription"""
    reason: Optional[str] = Field(None, max_length=500)


# =============================================
# Analytics / Dashboard Models
# =============================================

class TrackEventRequest(BaseModel):
    """Client analytics event"""
    event_type: str = Field(..., min_length=1, max_length=50)
    event_name: str = Field(..., min_length=1, max_length=100)
    properties: Dict[str, Any] = {}
    team_id: Optional[str] = None
    page_url: Optional[str] = None


class DashboardStats(BaseModel):
    """Headline numbers"""
    total_players: int = 0
    active_teams: int = 0
    events_this_month: int = 0
    avg_attendance: float = 0


class AttendanceTrendPoint(BaseModel):
    """Monthly attendance rate"""
    month: str
    rate: float


class TeamAttendance(BaseModel):
    """Attendance rate of one team"""
    team_id: str
    team_name: str
    rate: float


class DistributionSlice(BaseModel):
    """Pie chart slice"""
    name: str
    value: int
    color: str


class RecentActivity(BaseModel):
    """Activity feed entry"""
    id: str
    title: str
    description: str
    timestamp: Optional[str] = None
    status: str = "info"  # success, info, error


class DashboardAlert(BaseModel):
    """Dashboard alert"""
    alert_type: str  # pending_approvals, failed_payments
    message: str
    severity: str  # info, warning, error
    count: int = 0


class ClubDashboard(BaseModel):
    """Club dashboard"""
    total_players: int
    active_teams: int
    events_this_month: int
    pending_approvals: int
    upcoming_events: List[EventResponse]
    alerts: List[DashboardAlert]


# =============================================
# Roles / Permissions Models
# =============================================

class RoleAssignmentCreate(BaseModel):
    """Assign a role"""
    guardian_id: str
    role: UserRole
    team_id: Optional[str] = None


class RoleAssignmentUpdate(BaseModel):
    """Change a role assignment"""
    role: Optional[UserRole] = None
    team_id: Optional[str] = None
    is_active: Optional[bool] = None


class RoleAssignmentResponse(BaseModel):
    """User role view-model"""
    id: str
    guardian_id: str
    guardian_name: str = ""
    guardian_email: str = ""
    role: str
    team_id: Optional[str] = None
    team_name: Optional[str] = None
    is_active: bool = True
    assigned_at: Optional[str] = None
    assigned_by: Optional[str] = None


class PermissionInfo(BaseModel):
    """Permission row"""
    id: str
    name: str
    category: str
    description: Optional[str] = None


class PermissionCategory(BaseModel):
    """Permissions of one category"""
    category: str
    permissions: List[PermissionInfo]


class RolePermissionGrant(BaseModel):
    """Grant a permission to a role"""
    role: UserRole
    permission_id: str


class UserPermissions(BaseModel):
    """Resolved permissions of a user"""
    user_id: str
    permissions: List[str]
    flags: Dict[str, bool]
    accessible_teams: List[str] = []
