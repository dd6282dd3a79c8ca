from functools import lru_cache
from typing import Any, Dict, List, Optional

from benedict import benedict
from loguru import logger
from pydantic import BaseModel, root_validator

from noj.judger.schemas import Language


class Toolchain(BaseModel):
    name: Language
    source: str
    code: int
    compile_args: List[str] = []
    # interpreted languages run their source file directly
    artifact: Optional[str] = None

    @property
    def needs_compile(self) -> bool:
        return len(self.compile_args) > 0

    @property
    def artifact_name(self) -> str:
        return self.artifact or self.source


class ToolchainsConfig(BaseModel):
    languages: Dict[Language, Toolchain]

    @root_validator(pre=True)
    def validate_all(cls, values: Dict[str, Any]) -> Dict[str, Any]:
        languages = values.get("languages", {})

        for name, toolchain in languages.items():
            toolchain["name"] = name

        for language in Language:
            if language.value not in languages:
                raise ValueError(f"language {language} not defined in languages!")

        return values

    def get(self, language: Language) -> Toolchain:
        return self.languages[language]


def load_toolchains_config(filepath: str) -> ToolchainsConfig:
    data = benedict(filepath, format="yaml")
    config = ToolchainsConfig(**data.dict())
    logger.debug(f"toolchains loaded from {filepath}: {list(config.languages)}")
    return config


@lru_cache()
def get_toolchains_config() -> ToolchainsConfig:
    from noj.judger.config import settings

    return load_toolchains_config(settings.toolchains_config)
