"""Catalog layer package for read-only PCE lookups."""

from .interfaces import CatalogLoaderPort
from .label_filters import LabelValueFilter, catalog_split_csv
from .loader import PceCatalogLoader

__all__ = [
	"CatalogLoaderPort",
	"LabelValueFilter",
	"PceCatalogLoader",
	"catalog_split_csv",
]
