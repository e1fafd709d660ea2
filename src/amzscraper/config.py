"""
Configuration schemas for the scraping pipeline using Hydra.
"""

from dataclasses import dataclass, field
from typing import Optional

from omegaconf import DictConfig, OmegaConf


@dataclass
class PipelineConfig:
    """Which commands run, in order."""

    extract_reviews: bool = True
    extract_product: bool = False
    download: bool = False


@dataclass
class BrowserConfig:
    """Chrome driver configuration."""

    headless: bool = True
    window_width: int = 1920
    window_height: int = 1080
    page_load_strategy: str = "eager"
    page_load_timeout: int = 30
    user_agent: Optional[str] = None

    # Section expansion before product extraction
    expand_click_delay: float = 0.5
    expand_settle_delay: float = 2.0


@dataclass
class PaginationConfig:
    """Multi-page review run configuration."""

    max_pages: Optional[int] = -1  # -1 or null = all pages
    navigation_timeout: float = 10.0
    poll_interval: float = 0.1
    pre_wait_delay: float = 0.5
    settle_delay: float = 2.0
    page_load_delay: float = 3.0


@dataclass
class ExportConfig:
    """CSV export configuration."""

    output_dir: str = "data/exports"
    prefix: str = "amazon"
    include_materials_care: bool = False
    clear_after_download: bool = True


@dataclass
class StorageConfig:
    """Intermediate JSON store."""

    path: str = "data/scrape_store.json"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class ScraperConfig:
    """Main configuration class for the scraping pipeline."""

    url: Optional[str] = None
    # Saved HTML served in place of a live browser (offline runs)
    html_file: Optional[str] = None
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    browser: BrowserConfig = field(default_factory=BrowserConfig)
    pagination: PaginationConfig = field(default_factory=PaginationConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dictconfig(cls, cfg: DictConfig) -> "ScraperConfig":
        """
        Validate a Hydra config against the schema and return typed settings.

        Keys missing from ``cfg`` take their dataclass defaults; unknown keys
        or mistyped values raise an OmegaConf validation error.
        """
        merged = OmegaConf.merge(OmegaConf.structured(cls), cfg)
        return OmegaConf.to_object(merged)
