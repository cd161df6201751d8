"""
Command-line entry point for voxscribe.

Examples:
  voxscribe transcribe meeting.mp3 --model base.en --format srt -o meeting.srt
  voxscribe models list
  voxscribe models download small
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .audio import AudioPayload
from .errors import VoxscribeError
from .log import configure_logging
from .models import ModelManager, ModelType
from .settings import Settings, load_settings
from .transcriber import Transcriber
from .transcript import Transcript

logger = logging.getLogger(__name__)

RENDERERS: Dict[str, Callable[[Transcript], str]] = {
    "text": Transcript.as_text,
    "srt": Transcript.as_srt,
    "vtt": Transcript.as_vtt,
    "json": Transcript.to_json,
}


def _model_arg(value: str) -> ModelType:
    try:
        return ModelType.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser(cfg: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voxscribe",
        description="Transcribe audio files with whisper.cpp models",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--log-level", default=cfg.log.level, help="Logging level (default: %(default)s)")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    parser.add_argument("--cache-dir", type=Path, default=None, help=f"Model cache directory (default: {cfg.models.cache_dir})")
    subparsers = parser.add_subparsers(dest="command", required=True)

    transcribe = subparsers.add_parser("transcribe", help="Transcribe an audio file")
    transcribe.add_argument("audio", type=Path, help="Input audio file (wav, flac, ogg, mp3, ...)")
    transcribe.add_argument("-m", "--model", type=_model_arg, default=cfg.models.default_model, help="Model name (default: %(default)s)")
    transcribe.add_argument("-f", "--format", choices=sorted(RENDERERS), default="text", help="Output format (default: %(default)s)")
    transcribe.add_argument("-o", "--output", type=Path, default=None, help="Write the transcript here instead of stdout")
    transcribe.add_argument(
        "--translate",
        action=argparse.BooleanOptionalAction,
        default=cfg.engine.translate,
        help="Translate speech to English (default: %(default)s)",
    )
    transcribe.add_argument("--word-timestamps", action="store_true", help="Collect per-token timings (json output)")
    transcribe.add_argument("--prompt", default=None, help="Initial prompt to bias decoding")
    transcribe.add_argument("--language", default=cfg.engine.language, help="Spoken language code (default: auto)")
    transcribe.add_argument("--threads", type=int, default=cfg.engine.threads, help="Engine threads (default: %(default)s)")
    transcribe.add_argument("--engine", default=cfg.engine.provider, help="Inference engine (default: %(default)s)")

    models = subparsers.add_parser("models", help="Manage the local model cache")
    model_commands = models.add_subparsers(dest="models_command", required=True)
    model_commands.add_parser("list", help="List catalog models and their cache status")
    download = model_commands.add_parser("download", help="Download a model into the cache")
    download.add_argument("model", type=_model_arg)
    remove = model_commands.add_parser("remove", help="Delete a cached model")
    remove.add_argument("model", type=_model_arg)

    return parser


def _cmd_transcribe(args: argparse.Namespace, cfg: Settings, manager: ModelManager) -> int:
    engine_cfg = dataclasses.replace(
        cfg.engine,
        provider=args.engine,
        threads=args.threads,
        language=args.language,
    )
    transcriber = Transcriber.from_settings(dataclasses.replace(cfg, engine=engine_cfg), model_manager=manager)
    try:
        payload = AudioPayload.from_path(args.audio)
    except OSError as exc:
        logger.error("cli.transcribe.read_failed", extra={"path": str(args.audio), "error": repr(exc)})
        print(f"error: cannot read {args.audio}: {exc}", file=sys.stderr)
        return 1

    try:
        transcript = transcriber.transcribe_audio(
            payload.data,
            args.model,
            hint=payload.content_type,
            translate=args.translate,
            word_timestamps=args.word_timestamps,
            initial_prompt=args.prompt,
        )
    finally:
        transcriber.close()

    rendered = RENDERERS[args.format](transcript)
    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(rendered, encoding="utf-8")
        logger.info("cli.transcribe.written", extra={"path": str(args.output), "format": args.format})
    else:
        sys.stdout.write(rendered if rendered.endswith("\n") else rendered + "\n")
    return 0


def _cmd_models(args: argparse.Namespace, manager: ModelManager) -> int:
    if args.models_command == "list":
        cached = {entry.local_path for entry in manager.list_cached()}
        for model_type in ModelType:
            descriptor = manager.descriptor(model_type)
            status = "cached" if manager.cache_path(model_type) in cached else "-"
            size_mb = descriptor.expected_size_bytes / (1024 * 1024)
            languages = "english-only" if model_type.english_only else "multilingual"
            print(f"{model_type.value:<10} {size_mb:>9.1f} MB  {languages:<12}  {status}")
        return 0
    if args.models_command == "download":
        model = manager.resolve(args.model)
        print(model.local_path)
        return 0
    if args.models_command == "remove":
        removed = manager.evict(args.model)
        print(f"removed {args.model.value}" if removed else f"{args.model.value} is not cached")
        return 0
    raise AssertionError(f"unhandled models command {args.models_command!r}")


def main(argv: Optional[List[str]] = None) -> int:
    cfg = load_settings()
    parser = build_parser(cfg)
    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    models_cfg = cfg.models if args.cache_dir is None else dataclasses.replace(cfg.models, cache_dir=args.cache_dir)
    manager = ModelManager.from_settings(models_cfg)

    try:
        if args.command == "transcribe":
            return _cmd_transcribe(args, cfg, manager)
        return _cmd_models(args, manager)
    except VoxscribeError as exc:
        logger.error("cli.failed", extra={"command": args.command, "error": repr(exc)})
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
