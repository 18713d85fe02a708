"""Project scope: which GitLab projects project-bound tools may reach.

GITLAB_PROJECT_ID pins every call to one project whatever the caller sends.
Otherwise a non-empty GITLAB_ALLOWED_PROJECT_IDS rejects projects outside
the list. With neither set, any project is reachable.
"""

from dataclasses import dataclass

import structlog

from ..errors import ProjectNotAllowedError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ProjectScope:
    pinned_project_id: str | None = None
    allowed_project_ids: tuple[str, ...] = ()

    @property
    def is_restricted(self) -> bool:
        return bool(self.pinned_project_id or self.allowed_project_ids)

    def resolve(self, project_id: str) -> str:
        """Return the project ID a call must use.

        Raises:
            ProjectNotAllowedError: the project is outside the allowlist
        """
        if self.pinned_project_id:
            if project_id != self.pinned_project_id:
                logger.debug("Project pinned", requested=project_id, pinned=self.pinned_project_id)
            return self.pinned_project_id

        if self.allowed_project_ids and project_id not in self.allowed_project_ids:
            logger.warning("Project outside allowlist", project_id=project_id)
            raise ProjectNotAllowedError(project_id, self.allowed_project_ids)

        return project_id
