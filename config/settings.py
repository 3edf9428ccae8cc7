"""
Settings Configuration
配置管理 - 基于 pydantic-settings 的环境变量校验
"""
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from models.schemas import ProviderConfig, ProviderId


DEFAULT_MODELS: Dict[str, str] = {
    ProviderId.GEMINI.value: "gemini-1.5-flash",
    ProviderId.DEEPSEEK.value: "deepseek-chat",
    ProviderId.CLAUDE.value: "claude-3-5-sonnet-20241022",
    ProviderId.OPENAI.value: "gpt-4o",
}

DEFAULT_FALLBACK_MODELS: Dict[str, str] = {
    ProviderId.GEMINI.value: "gemini-1.5-flash",
    ProviderId.DEEPSEEK.value: "deepseek-chat",
    ProviderId.CLAUDE.value: "claude-3-haiku-20240307",
    ProviderId.OPENAI.value: "gpt-4o-mini",
}


class LLMSettings(BaseSettings):
    """LLM provider configuration"""
    primary_provider: str = Field(default="deepseek", description="gemini, deepseek, claude or openai")
    secondary_provider: Optional[str] = Field(default=None, description="Second model for dialectical mode")
    dialectical_mode: bool = Field(default=False, description="Cross-validate every phase with two models")
    temperature: float = Field(default=0.7, description="Sampling temperature")
    max_tokens: int = Field(default=4096, description="Max generated tokens")
    timeout: float = Field(default=120.0, description="Per-request timeout (seconds)")

    gemini_api_key: Optional[str] = Field(default=None, description="Google Gemini API Key")
    deepseek_api_key: Optional[str] = Field(default=None, description="DeepSeek API Key")
    claude_api_key: Optional[str] = Field(default=None, description="Anthropic API Key")
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API Key")

    gemini_model: str = Field(default=DEFAULT_MODELS["gemini"])
    deepseek_model: str = Field(default=DEFAULT_MODELS["deepseek"])
    claude_model: str = Field(default=DEFAULT_MODELS["claude"])
    openai_model: str = Field(default=DEFAULT_MODELS["openai"])

    gemini_enabled: bool = Field(default=True)
    deepseek_enabled: bool = Field(default=True)
    claude_enabled: bool = Field(default=True)
    openai_enabled: bool = Field(default=True)

    fallback_models: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_FALLBACK_MODELS),
        description="Model retried once when the configured one hits a quota error",
    )

    class Config:
        env_prefix = "LLM_"

    def provider_config(self, provider_id: str) -> ProviderConfig:
        pid = ProviderId(provider_id).value
        return ProviderConfig(
            api_key=getattr(self, f"{pid}_api_key") or "",
            model=getattr(self, f"{pid}_model"),
            enabled=getattr(self, f"{pid}_enabled"),
        )

    def provider_configs(self) -> Dict[ProviderId, ProviderConfig]:
        return {pid: self.provider_config(pid.value) for pid in ProviderId}


class SemanticScholarSettings(BaseSettings):
    """Semantic Scholar API configuration"""
    api_key: Optional[str] = Field(default=None, description="Semantic Scholar API Key (optional)")
    base_url: str = Field(default="https://api.semanticscholar.org/graph/v1")
    max_results: int = Field(default=10)
    min_interval: float = Field(default=1.0, description="Minimum seconds between requests")

    class Config:
        env_prefix = "SEMANTIC_SCHOLAR_"


class OpenAlexSettings(BaseSettings):
    """OpenAlex API configuration"""
    base_url: str = Field(default="https://api.openalex.org")
    mailto: Optional[str] = Field(default=None, description="Polite-pool contact email")
    max_results: int = Field(default=10)

    class Config:
        env_prefix = "OPENALEX_"


class ArxivSettings(BaseSettings):
    """ArXiv API configuration"""
    max_results: int = Field(default=10)
    sort_by: str = Field(default="relevance", description="relevance, submittedDate or lastUpdatedDate")

    class Config:
        env_prefix = "ARXIV_"


class CrossRefSettings(BaseSettings):
    """CrossRef API configuration"""
    enabled: bool = Field(default=False, description="Include CrossRef in evidence searches")
    base_url: str = Field(default="https://api.crossref.org")
    mailto: Optional[str] = Field(default=None)
    max_results: int = Field(default=10)

    class Config:
        env_prefix = "CROSSREF_"


class AggregatorSettings(BaseSettings):
    """Evidence aggregation thresholds"""
    limit_per_source: int = Field(default=10)
    min_results: int = Field(default=10)
    min_quality: float = Field(default=0.2, description="Papers scoring below are dropped")
    max_results: int = Field(default=60)
    source_timeout: float = Field(default=30.0, description="Per-source search timeout (seconds)")

    class Config:
        env_prefix = "AGGREGATOR_"


class ExternalAgentSettings(BaseSettings):
    """Long-running external research agent"""
    enabled: bool = Field(default=False, description="Route research through the external agent")
    base_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta")
    agent: str = Field(default="deep-research-pro-preview-12-2025")
    poll_interval: float = Field(default=5.0, description="Seconds between status polls")
    timeout: float = Field(default=600.0, description="Overall deadline (seconds)")

    class Config:
        env_prefix = "EXTERNAL_AGENT_"


class GeneralSettings(BaseSettings):
    """General settings"""
    request_timeout: int = Field(default=30, description="HTTP request timeout (seconds)")
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)

    class Config:
        env_prefix = "RESEARCH_"


class Settings(BaseSettings):
    """Root configuration aggregating every section"""

    llm: LLMSettings = Field(default_factory=LLMSettings)
    semantic_scholar: SemanticScholarSettings = Field(default_factory=SemanticScholarSettings)
    openalex: OpenAlexSettings = Field(default_factory=OpenAlexSettings)
    arxiv: ArxivSettings = Field(default_factory=ArxivSettings)
    crossref: CrossRefSettings = Field(default_factory=CrossRefSettings)
    aggregator: AggregatorSettings = Field(default_factory=AggregatorSettings)
    external_agent: ExternalAgentSettings = Field(default_factory=ExternalAgentSettings)
    general: GeneralSettings = Field(default_factory=GeneralSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """Load settings after applying an optional .env file (default: config/.env)"""
        if env_path is None:
            env_path = Path(__file__).parent / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            llm=LLMSettings(),
            semantic_scholar=SemanticScholarSettings(),
            openalex=OpenAlexSettings(),
            arxiv=ArxivSettings(),
            crossref=CrossRefSettings(),
            aggregator=AggregatorSettings(),
            external_agent=ExternalAgentSettings(),
            general=GeneralSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings singleton, for the CLI edge"""
    return Settings.load_from_env_file()
