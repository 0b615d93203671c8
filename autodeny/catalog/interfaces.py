"""Typed interfaces for catalog-layer responsibilities."""

from typing import Protocol

from autodeny.domain import EnvironmentAppSet, Label, Service


class CatalogLoaderPort(Protocol):
    """Port definition for read-only PCE catalog lookups."""

    def catalog_load_environments(self) -> list[Label]:
        """Return environment labels in upstream order.

        Raises:
            CatalogError: Raised when the listing cannot be loaded.
        """

    def catalog_load_risky_services(self) -> list[Service]:
        """Return ransomware-flagged services in upstream order.

        Raises:
            CatalogError: Raised when the listing cannot be loaded.
        """

    def catalog_load_app_set_for_environment(self, environment: Label) -> EnvironmentAppSet:
        """Return unique application labels of eligible workloads in one environment.

        Raises:
            CatalogError: Raised when the workload listing cannot be loaded.
        """

    def catalog_resolve_any_address_target(self, name: str) -> str:
        """Return the href of the single IP list named `name`.

        Raises:
            NotFoundError: Raised when zero or several IP lists match.
        """
