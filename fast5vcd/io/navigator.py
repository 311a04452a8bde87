from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from fast5vcd.core import GroupNotFound
from fast5vcd.io.container import ContainerAccessor


logger = logging.getLogger(__name__)

RAW_ROOT = "/Raw"
RAW_READS = "/Raw/Reads"
ANALYSES_ROOT = "/Analyses"

# Only this instance is looked up unless the caller asks for a scan.
DEFAULT_EVENT_ANALYSIS = "EventDetection_000"

_EVENT_ANALYSIS_RE = re.compile(r"^EventDetection_(?P<idx>\d{3})$")


@dataclass(frozen=True, slots=True)
class ReadLocation:
    """
    Resolved read sub-group.

    Examples of `group`:
    - "/Raw/Reads/Read_812"
    - "/Analyses/EventDetection_000/Reads/Read_812"
    """

    group: str
    read_name: str
    analysis: str | None = None

    def child(self, name: str) -> str:
        return f"{self.group}/{name}"


def _select_single_child(container: ContainerAccessor, parent: str, log: logging.Logger) -> str:
    """Return the first child of `parent` in name order.

    An empty group is reported as GroupNotFound; more than one child is a
    data-quality warning only.
    """
    children = container.list_children(parent)
    if not children:
        raise GroupNotFound(f"Group '{parent}' is empty")
    if len(children) > 1:
        log.warning(
            "Group '%s' holds %d reads, using '%s' (others: %s)",
            parent, len(children), children[0], ", ".join(children[1:]),
        )
    return children[0]


def locate_raw_group(
    container: ContainerAccessor,
    *,
    log: logging.Logger = logger,
) -> ReadLocation:
    """Resolve the single read under /Raw/Reads."""
    for path in (RAW_ROOT, RAW_READS):
        if not container.link_exists(path):
            log.debug("Group '%s' not found", path)
            raise GroupNotFound(path)

    name = _select_single_child(container, RAW_READS, log)
    return ReadLocation(group=f"{RAW_READS}/{name}", read_name=name)


def list_event_analyses(container: ContainerAccessor) -> list[str]:
    """EventDetection_NNN instances under /Analyses, in name order."""
    if not container.link_exists(ANALYSES_ROOT):
        return []
    return [
        name for name in container.list_children(ANALYSES_ROOT)
        if _EVENT_ANALYSIS_RE.match(name)
    ]


def locate_event_group(
    container: ContainerAccessor,
    analysis: str | None = DEFAULT_EVENT_ANALYSIS,
    *,
    log: logging.Logger = logger,
) -> ReadLocation:
    """Resolve the single read under /Analyses/<analysis>/Reads.

    Parameters
    ----------
    analysis:
        Analysis instance name. Files using another instance index are
        GroupNotFound under the default. With None, every EventDetection_NNN
        instance is listed in name order and the first one is used.
    """
    if not container.link_exists(ANALYSES_ROOT):
        log.debug("Group '%s' not found", ANALYSES_ROOT)
        raise GroupNotFound(ANALYSES_ROOT)

    if analysis is None:
        instances = list_event_analyses(container)
        if not instances:
            raise GroupNotFound(f"{ANALYSES_ROOT}/EventDetection_*")
        if len(instances) > 1:
            log.warning(
                "Found %d event detection analyses, using '%s'",
                len(instances), instances[0],
            )
        analysis = instances[0]

    base = f"{ANALYSES_ROOT}/{analysis}"
    reads = f"{base}/Reads"
    for path in (base, reads):
        if not container.link_exists(path):
            log.debug("Group '%s' not found", path)
            raise GroupNotFound(path)

    name = _select_single_child(container, reads, log)
    return ReadLocation(group=f"{reads}/{name}", read_name=name, analysis=analysis)
