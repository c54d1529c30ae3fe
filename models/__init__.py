from models.reactor import Reactor, Position
from models.zone import Zone
from models.batch import Batch
from models.log import ReactorLog, ReactorLogView, ReactorStatus
from models.category import CategoryTag
from models.audit import AuditEntry, Notice
