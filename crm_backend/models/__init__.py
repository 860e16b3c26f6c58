# Models package - normalized database models
from crm_backend.models.user import User, Organization, OrganizationMember
from crm_backend.models.company import Company
from crm_backend.models.contact import Contact
from crm_backend.models.lead import Lead, LeadComment, LeadSource
from crm_backend.models.tag import Tag, ContactTagAssignment, CompanyTagAssignment
from crm_backend.models.task import Task
from crm_backend.models.notification import Notification
from crm_backend.models.activity import ActivityLog
