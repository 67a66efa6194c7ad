"""Runtime settings read from the environment (and .env via python-dotenv).

  DATA_DIR          session store directory            ./data
  LLM_PROVIDER_URL  narrator backend base URL          https://api.openai.com
  LLM_API_KEY       bearer token (or OPENAI_API_KEY)   ""
  LLM_FORMAT        openai_chat | openai | koboldcpp   openai_chat
  LLM_MODEL         model identifier                   gpt-4o-mini
  LLM_TEMPERATURE   sampling temperature               0.7
  LLM_TIMEOUT       hard narrator timeout, seconds     30
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field

from life_sim.llm import HttpLLM, ProviderFormat

ROOT = Path(__file__).parent.parent
DEFAULT_DATA_DIR = ROOT / "data"


class Settings(BaseModel):
    data_dir: Path = DEFAULT_DATA_DIR
    llm_provider_url: str = "https://api.openai.com"
    llm_api_key: str = ""
    llm_format: ProviderFormat = "openai_chat"
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.7
    llm_timeout: float = Field(default=30.0, gt=0)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables; unset ones keep their defaults."""
        env = os.environ if env is None else env
        fields: dict[str, str] = {}
        mapping = {
            "DATA_DIR": "data_dir",
            "LLM_PROVIDER_URL": "llm_provider_url",
            "LLM_FORMAT": "llm_format",
            "LLM_MODEL": "llm_model",
            "LLM_TEMPERATURE": "llm_temperature",
            "LLM_TIMEOUT": "llm_timeout",
        }
        for var, field in mapping.items():
            if env.get(var):
                fields[field] = env[var]
        api_key = env.get("LLM_API_KEY") or env.get("OPENAI_API_KEY")
        if api_key:
            fields["llm_api_key"] = api_key
        return cls.model_validate(fields)

    def build_llm(self) -> HttpLLM:
        # The narrator enforces llm_timeout itself; the HTTP timeout is a backstop.
        return HttpLLM(
            provider_url=self.llm_provider_url,
            api_key=self.llm_api_key,
            provider_format=self.llm_format,
            model=self.llm_model,
            temperature=self.llm_temperature,
            timeout=self.llm_timeout,
        )
