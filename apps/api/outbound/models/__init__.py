from outbound.accounts.models import User
from outbound.content.models import Campaign, Cohort, CohortMember, CohortStream, Item
from outbound.platform.audit.models import AuditLog
from outbound.platform.settings.models import PlatformSetting
from outbound.team.models import Organization, OrganizationMember, TeamMember

__all__ = [
	"AuditLog",
	"Campaign",
	"Cohort",
	"CohortMember",
	"CohortStream",
	"Item",
	"Organization",
	"OrganizationMember",
	"PlatformSetting",
	"TeamMember",
	"User",
]
