"""
配置加载器 - 支持YAML/TOML格式配置文件
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field

import yaml

try:  # py3.11+
    import tomllib as tomli
except ImportError:
    import tomli

from .resolver import DEFAULT_COMPILED_EXTENSIONS, DEFAULT_EXTENSIONS, DEFAULT_INDEX_NAMES
from .unused_exports import DEFAULT_ENTRY_PATTERNS


CONFIG_CANDIDATES = [
    "shakecheck.yaml",
    "shakecheck.yml",
    ".shakecheck.yaml",
    ".shakecheck.yml",
    "pyproject.toml",  # 检查 [tool.shakecheck]
]


@dataclass
class ResolveConfig:
    """模块解析配置"""
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    index_names: List[str] = field(default_factory=lambda: list(DEFAULT_INDEX_NAMES))
    # 编译产物扩展名 -> 源码扩展名（如 ./a.js 实际对应 a.ts）
    compiled_extensions: Dict[str, List[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_COMPILED_EXTENSIONS.items()}
    )


@dataclass
class AnalysisConfig:
    """分析配置"""
    include: List[str] = field(default_factory=lambda: [
        "**/*.js", "**/*.jsx", "**/*.ts", "**/*.tsx", "**/*.mjs", "**/*.mts",
    ])
    exclude: List[str] = field(default_factory=lambda: [
        "**/node_modules/**", "**/dist/**", "**/build/**", "**/.next/**",
        "**/coverage/**", "**/*.test.*", "**/*.spec.*", "**/__tests__/**",
    ])
    # 入口文件（其导出视为公共API，不参与未使用导出检查）
    entry_points: List[str] = field(default_factory=lambda: list(DEFAULT_ENTRY_PATTERNS))
    resolve: ResolveConfig = field(default_factory=ResolveConfig)
    # 依赖图输出目录（相对项目根目录；None 表示不渲染）
    output: Optional[str] = None
    format: str = "svg"
    workers: int = 1


def load_config(config_path: Optional[Path] = None, cwd: Optional[Path] = None) -> AnalysisConfig:
    """
    加载配置文件

    Args:
        config_path: 指定配置文件路径，如果为None则自动查找
        cwd: 自动查找的起始目录（默认当前目录）

    Returns:
        AnalysisConfig: 加载的配置
    """
    if config_path:
        return _load_config_file(Path(config_path))

    found_config = find_config_file(cwd)
    if found_config:
        print(f"找到配置文件: {found_config}")
        return _load_config_file(found_config)

    return AnalysisConfig()


def find_config_file(cwd: Optional[Path] = None) -> Optional[Path]:
    """
    按优先级查找配置文件

    Returns:
        Path: 找到的配置文件路径，如果没找到返回None
    """
    base = Path(cwd) if cwd else Path(".")
    for name in CONFIG_CANDIDATES:
        candidate = base / name
        if candidate.exists():
            # 对于pyproject.toml，检查是否有[tool.shakecheck]配置
            if candidate.name == "pyproject.toml":
                if _has_shakecheck_config(candidate):
                    return candidate
                continue
            return candidate

    return None


def _load_config_file(config_path: Path) -> AnalysisConfig:
    """加载指定的配置文件"""
    if not config_path.exists():
        raise FileNotFoundError(f"配置文件不存在: {config_path}")

    suffix = config_path.suffix.lower()

    if suffix in [".yaml", ".yml"]:
        return _load_yaml_config(config_path)
    elif suffix == ".toml":
        return _load_toml_config(config_path)
    else:
        raise ValueError(f"不支持的配置文件格式: {suffix}")


def _load_yaml_config(config_path: Path) -> AnalysisConfig:
    """加载YAML配置文件"""
    with config_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data:
        return AnalysisConfig()

    return parse_config_data(data)


def _load_toml_config(config_path: Path) -> AnalysisConfig:
    """加载TOML配置文件"""
    with config_path.open("rb") as f:
        data = tomli.load(f)

    # 检查是否是pyproject.toml格式
    if "tool" in data and "shakecheck" in data["tool"]:
        config_data = data["tool"]["shakecheck"]
    else:
        config_data = data

    return parse_config_data(config_data)


def _has_shakecheck_config(pyproject_path: Path) -> bool:
    """检查pyproject.toml是否包含shakecheck配置"""
    try:
        with pyproject_path.open("rb") as f:
            data = tomli.load(f)
    except (OSError, tomli.TOMLDecodeError):
        return False
    return "tool" in data and "shakecheck" in data["tool"]


def _str_list(value: Any) -> Optional[List[str]]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(x) for x in value]
    return None


def parse_config_data(data: Dict[str, Any]) -> AnalysisConfig:
    """解析配置数据（未知字段忽略）"""
    config = AnalysisConfig()

    for key in ("include", "exclude", "entry_points"):
        if key in data:
            parsed = _str_list(data[key])
            if parsed is not None:
                setattr(config, key, parsed)
    if "output" in data:
        config.output = str(data["output"])
    if "format" in data:
        config.format = str(data["format"])
    if "workers" in data:
        try:
            config.workers = max(1, int(data["workers"]))
        except (TypeError, ValueError):
            config.workers = 1

    # 模块解析配置
    resolve_data = data.get("resolve")
    if isinstance(resolve_data, dict):
        resolve = ResolveConfig()
        exts = _str_list(resolve_data.get("extensions"))
        if exts:
            resolve.extensions = exts
        names = _str_list(resolve_data.get("index_names"))
        if names:
            resolve.index_names = names
        compiled = resolve_data.get("compiled_extensions")
        if isinstance(compiled, dict):
            parsed_map: Dict[str, List[str]] = {}
            for k, v in compiled.items():
                targets = _str_list(v)
                if targets:
                    parsed_map[str(k)] = targets
            resolve.compiled_extensions = parsed_map
        config.resolve = resolve

    return config
