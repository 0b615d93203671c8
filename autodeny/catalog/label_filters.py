"""Label value include/exclude filtering for environment and application scope."""

from __future__ import annotations

from dataclasses import dataclass

from autodeny.domain import EnvironmentAppSet, Label


@dataclass(frozen=True)
class LabelValueFilter:
    """Include/exclude lists matched against label values.

    One filter covers both environment and application labels, so an include
    list that scopes environments must also name the applications to keep,
    e.g. `DEV,APP1`.

    Attributes:
        include_values: Values that must match when non-empty.
        exclude_values: Values that never pass.
    """

    include_values: frozenset[str] = frozenset()
    exclude_values: frozenset[str] = frozenset()

    @classmethod
    def filter_from_csv(cls, include_csv: str | None, exclude_csv: str | None) -> "LabelValueFilter":
        """Build filter from comma-separated value lists.

        Args:
            include_csv: Comma-separated include values or None.
            exclude_csv: Comma-separated exclude values or None.

        Returns:
            LabelValueFilter: Filter with blank entries dropped.
        """

        return cls(
            include_values=catalog_split_csv(include_csv),
            exclude_values=catalog_split_csv(exclude_csv),
        )

    def filter_is_noop(self) -> bool:
        return not self.include_values and not self.exclude_values

    def filter_accepts(self, label: Label) -> bool:
        """Return whether one label passes include and exclude lists."""

        if self.include_values and label.value not in self.include_values:
            return False
        return label.value not in self.exclude_values

    def filter_environments(self, environments: list[Label]) -> list[Label]:
        return [environment for environment in environments if self.filter_accepts(environment)]

    def filter_app_set(self, app_set: EnvironmentAppSet) -> EnvironmentAppSet:
        """Return app set with rejected applications removed."""

        if self.filter_is_noop():
            return app_set
        return EnvironmentAppSet(
            environment=app_set.environment,
            applications=tuple(
                application for application in app_set.applications if self.filter_accepts(application)
            ),
        )


def catalog_split_csv(value: str | None) -> frozenset[str]:
    """Split comma-separated values into a set of stripped non-blank entries."""

    if not value:
        return frozenset()
    return frozenset(part.strip() for part in value.split(",") if part.strip())
