from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class EntityType(int, enum.Enum):
    """NPPES entity type code"""
    INDIVIDUAL = 1
    ORGANIZATION = 2


class Gender(str, enum.Enum):
    """Provider gender code"""
    MALE = "M"
    FEMALE = "F"
    OTHER = "X"


GENDER_CODES = tuple(g.value for g in Gender)
GENDER_SQL_LIST = ", ".join(f"'{code}'" for code in GENDER_CODES)


class AddressPurpose(str, enum.Enum):
    """Address purpose within a provider record"""
    LOCATION = "LOCATION"
    MAILING = "MAILING"


class RunType(str, enum.Enum):
    """Kind of import run"""
    BULK = "bulk"
    INCREMENTAL = "incremental"


class ImportStatus(str, enum.Enum):
    """Import run status"""
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    PARTIAL = "partial"


class PipelineStage(str, enum.Enum):
    """Bulk pipeline state machine"""
    NO_SHADOW = "no_shadow"
    SHADOW_BUILT = "shadow_built"
    TRANSFORMED = "transformed"
    VALIDATED = "validated"
    CUTOVER_COMMITTED = "cutover_committed"
    OLD_DROPPED = "old_dropped"
    ROLLED_BACK = "rolled_back"
