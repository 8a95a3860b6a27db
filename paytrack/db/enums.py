# paytrack/db/enums.py
import enum


# Project related enums
class ProjectStatus(enum.Enum):
    new = "new"
    in_progress = "in_progress"
    in_production = "in_production"
    active = "active"
    # terminal exits, reachable from any state
    completed = "completed"
    cancelled = "cancelled"


# Payment related enums
class PaymentStatus(enum.Enum):
    pending = "pending"
    paid = "paid"
    overdue = "overdue"
    cancelled = "cancelled"


# Team related enums
class UserRole(enum.Enum):
    admin = "admin"
    developer = "developer"
    finance = "finance"


# AuditLog related enums
class AuditEntityType(enum.Enum):
    Project = "project"
    Payment = "payment"
    Task = "task"
    Client = "client"
    User = "user"
    Attachment = "attachment"


class AuditAction(enum.Enum):
    create = "create"
    update = "update"
    delete = "delete"
    system = "system"


class ScheduleInsertMode(enum.Enum):
    best_effort = "best_effort"
    all_or_nothing = "all_or_nothing"
