"""C++クラス階層チェックツールのメインエントリーポイント。"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional
import logging

import yaml

from .config import Config, ConfigurationError
from .analyzer.engine import AnalysisEngine
from .frontend.clang_analyzer import ClangAnalyzer, ClangParseError
from .frontend.declaration_extractor import DeclarationExtractor
from .io.callsite_reader import CallSiteReader
from .io.report_writer import ReportWriter
from .io.unit_loader import InputFormatError, UnitLoader
from .models.report import AnalysisReport, AnalysisUnit
from .utils.logger import setup_logging

logger = logging.getLogger(__name__)

# 終了コード
EXIT_OK = 0
EXIT_FINDINGS = 1
EXIT_FATAL = 2


def build_parser() -> argparse.ArgumentParser:
    """コマンドライン引数パーサーを構築する。"""
    parser = argparse.ArgumentParser(
        prog="hierarchy-lint",
        description="C++クラス階層の分類・適合性検査ツール"
    )
    parser.add_argument(
        "-i", "--input",
        help="解析単位ファイル（YAML/JSON）"
    )
    parser.add_argument(
        "--sources",
        nargs="+",
        metavar="FILE",
        help="libclangで解析するC++ソースファイル"
    )
    parser.add_argument(
        "--call-sites",
        metavar="TABLE",
        help="追加の呼び出し箇所一覧（CSV/Excel）"
    )
    parser.add_argument(
        "-o", "--output",
        help="出力レポート（.xlsx または .csv）"
    )
    parser.add_argument(
        "-c", "--config",
        help="設定ファイルパス"
    )
    parser.add_argument(
        "--bloat-threshold",
        type=int,
        help="テンプレート肥大化の閾値（設定ファイルより優先）"
    )
    parser.add_argument(
        "--no-cycle-errors",
        action="store_true",
        help="循環継承を警告として報告する"
    )
    parser.add_argument(
        "-j", "--jobs",
        type=int,
        help="ワーカースレッド数"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="詳細ログを有効にする"
    )
    parser.add_argument(
        "--init-config",
        metavar="PATH",
        help="デフォルト設定ファイルを生成する"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """メインエントリーポイント。

    Returns:
        終了コード（0: エラー指摘なし、1: エラー指摘あり、2: 致命的エラー）
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # --init-configモードを処理
    if args.init_config:
        Config().save_yaml(args.init_config)
        print(f"設定ファイルを生成しました: {args.init_config}")
        return EXIT_OK

    # 設定を読み込み
    try:
        config = _load_config(args)
    except (ConfigurationError, OSError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FATAL

    setup_logging(level=config.log_level, log_file=config.log_file)

    if not (args.input or args.sources or args.call_sites
            or config.source_directories):
        parser.error("--input、--sources、--call-sitesのいずれかが必要です")

    try:
        engine = AnalysisEngine(config)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_FATAL

    try:
        unit = _load_unit(args, config)
    except (InputFormatError, ClangParseError) as e:
        logger.error(f"Input error: {e}")
        return EXIT_FATAL

    report = engine.run(unit)

    if args.output:
        try:
            ReportWriter(args.output).write(report)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to write report: {e}")
            return EXIT_FATAL
    else:
        _print_findings(report)

    return EXIT_FINDINGS if report.has_errors() else EXIT_OK


def _load_config(args: argparse.Namespace) -> Config:
    """設定ファイルを読み込み、コマンドライン引数で上書きする。

    Raises:
        ConfigurationError: 設定ファイルの形式が不正な場合
        OSError: 設定ファイルを読めない場合
    """
    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            raise ConfigurationError(
                f"設定ファイルが見つかりません: {args.config}"
            )
        config = Config.from_yaml(str(config_path))
    else:
        config = Config()

    if args.bloat_threshold is not None:
        config.bloat_threshold = args.bloat_threshold
    if args.no_cycle_errors:
        config.treat_cycles_as_error = False
    if args.jobs is not None:
        config.max_workers = args.jobs
    if args.verbose:
        config.log_level = "DEBUG"

    return config


def _load_unit(args: argparse.Namespace, config: Config) -> AnalysisUnit:
    """入力ファイルから解析単位を構築する。

    Raises:
        InputFormatError: 入力ファイルを読めない場合
        ClangParseError: C++ソースのパースに失敗した場合
    """
    unit = AnalysisUnit()

    if args.input:
        if not Path(args.input).exists():
            raise InputFormatError(f"入力ファイルが見つかりません: {args.input}")
        unit.extend(UnitLoader().load(args.input))

    source_files = args.sources or config.get_source_files()
    if source_files:
        analyzer = ClangAnalyzer(
            include_paths=config.include_paths,
            additional_args=config.compiler_args,
            cxx_standard=config.cxx_standard
        )
        unit.extend(DeclarationExtractor(analyzer).extract_files(source_files))

    if args.call_sites:
        if not Path(args.call_sites).exists():
            raise InputFormatError(
                f"呼び出し箇所ファイルが見つかりません: {args.call_sites}"
            )
        unit.extend(CallSiteReader(args.call_sites).read())

    return unit


def _print_findings(report: AnalysisReport) -> None:
    """指摘を標準出力に表示する。"""
    for finding in report.findings:
        print(finding)

    counts = report.count_by_classification()
    summary = ", ".join(f"{c.value}: {n}" for c, n in counts.items() if n)
    print(f"\n{len(report.findings)} findings ({summary or 'no classes'})")


if __name__ == "__main__":
    sys.exit(main())
