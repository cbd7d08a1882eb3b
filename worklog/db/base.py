# Import all the models, so that Base.metadata / LocalBase.metadata know them
from worklog.db.base_class import Base, LocalBase  # noqa: F401
from worklog.db.models.technician import Technician  # noqa: F401
from worklog.db.models.task import Task  # noqa: F401
from worklog.db.models.local_job import LocalJob, DeletedJobId  # noqa: F401
