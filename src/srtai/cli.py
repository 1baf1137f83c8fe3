from __future__ import annotations

import argparse
import sys

from .env import load_dotenv_if_present
from .config import (
    BACKEND_NAMES,
    DEFAULT_BATCH_SIZE,
    DEFAULT_CONCURRENCY,
    DEFAULT_RETRIES,
    TranslateConfig,
)
from .log import configure_logging
from .runner import run_translate


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="srtai",
        description="srtai: 使用 LLM 翻译 SRT 字幕（支持单个 .srt 文件或包含 .srt 的 zip 压缩包）。",
    )
    parser.add_argument(
        "files",
        nargs="+",
        help="输入的 .srt 文件或 zip 压缩包路径。",
    )
    parser.add_argument(
        "-t",
        "--to",
        required=True,
        help="目标语言代码（如: es, fr, zh）。",
    )
    parser.add_argument(
        "-m",
        "--model",
        default=None,
        help="模型标识，默认读取环境变量 SRTAI_MODEL_ID 或 BEDROCK_MODEL_ID。",
    )
    parser.add_argument(
        "-r",
        "--region",
        default=None,
        help="后端区域，默认读取环境变量 AWS_REGION。",
    )
    parser.add_argument(
        "-b",
        "--batch-size",
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help=f"每次请求包含的字幕条数（默认: {DEFAULT_BATCH_SIZE}）。",
    )
    parser.add_argument(
        "-c",
        "--concurrency",
        type=int,
        default=DEFAULT_CONCURRENCY,
        help=f"单个文件内同时进行的请求数（默认: {DEFAULT_CONCURRENCY}）。",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=DEFAULT_RETRIES,
        help=f"单个 batch 失败后的重试次数（默认: {DEFAULT_RETRIES}）。",
    )
    parser.add_argument(
        "--backend",
        choices=BACKEND_NAMES,
        default=None,
        help="后端类型：converse（Bedrock Converse）、chat（OpenAI 兼容接口）或 echo；"
        "默认读取 SRTAI_BACKEND，未设置时有 SRTAI_LLM_URL 则用 chat，否则用 converse。",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="输出目录（默认: 当前目录下的 translated/）。",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="不调用后端，仅在原文前加上 [语言代码] 前缀，用于检查整条流程。",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="输出调试日志（包括请求与响应预览）。",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    # 确保在解析参数和使用配置之前加载 .env 中的环境变量
    load_dotenv_if_present()
    if argv is None:
        argv = sys.argv[1:]

    parser = build_arg_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose)

    try:
        config = TranslateConfig.from_env(
            target_language=args.to,
            model_id=args.model,
            region=args.region,
            batch_size=args.batch_size,
            concurrency=args.concurrency,
            retries=args.retries,
            dry_run=args.dry_run,
            backend=args.backend,
        ).validate()
        reports = run_translate(args.files, config, output_dir=args.output)
        written: list[str] = []
        for report in reports:
            if str(report.output) not in written:
                written.append(str(report.output))
            if report.partial:
                print(f"Partial: {report.source} ({report.empty}/{report.cues} cues untranslated)")
        for path in written:
            print(f"Wrote {path}")
        return 0
    except KeyboardInterrupt:
        print("\n用户中断")
        return 1
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
