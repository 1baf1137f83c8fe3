from __future__ import annotations

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def load_dotenv_if_present(env_path: Optional[str | Path] = None) -> Optional[Path]:
    """
    尝试加载 .env 文件（如果存在），返回实际加载的路径。

    - 未显式传入路径时，先查找当前工作目录，再查找仓库根目录
      （src/srtai/ 之上两级）；
    - 已存在的环境变量不会被覆盖。
    """
    if env_path is not None:
        candidates = [Path(env_path)]
    else:
        root = Path(__file__).resolve().parents[2]
        candidates = [Path.cwd() / ".env", root / ".env"]

    for env_file in candidates:
        if env_file.is_file():
            load_dotenv(dotenv_path=env_file, override=False)
            return env_file
    return None
