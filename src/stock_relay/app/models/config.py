from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class ParserConfig(BaseModel):
    delimiter: str = ","
    encoding: str = "utf-8"

    @field_validator("delimiter")
    @classmethod
    def single_character(cls, value: str) -> str:
        if len(value) != 1 or value in "\r\n":
            raise ValueError("delimiter must be a single non-newline character")
        return value


class CatalogConfig(BaseModel):
    type: Literal["woocommerce", "memory"] = "woocommerce"
    store_url: Optional[str] = None
    consumer_key: Optional[str] = None
    consumer_secret: Optional[str] = None
    timeout_seconds: float = Field(default=30.0, gt=0)
    per_page: int = Field(default=100, ge=1, le=100)

    @property
    def configured(self) -> bool:
        return bool(self.store_url and self.consumer_key and self.consumer_secret)


class ReconcileConfig(BaseModel):
    sku_match: Literal["exact", "case_insensitive"] = "exact"
    duplicate_sku_policy: Literal["first", "reject"] = "first"
    max_concurrency: int = Field(default=4, ge=1, le=32)


class ReportConfig(BaseModel):
    display_limit: int = Field(default=5, ge=1)
    artifact_bucket: Optional[str] = None
    artifact_prefix: str = "imports"


class AppConfig(BaseModel):
    schema_version: int = 1
    parser: ParserConfig = Field(default_factory=ParserConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    reconcile: ReconcileConfig = Field(default_factory=ReconcileConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
