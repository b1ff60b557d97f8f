import importlib

from procurement.models.job_log import JobLog
from procurement.models.sequence_counter import SequenceCounter


def import_all_models() -> None:
    for module_name in (
        "procurement.models.job_log",
        "procurement.models.sequence_counter",
    ):
        importlib.import_module(module_name)


__all__ = [
    "JobLog",
    "SequenceCounter",
    "import_all_models",
]
