#!/usr/bin/env python3
"""
Soak runner for image-processing memory leak hunting.

Loads the configuration, builds the processor and sinks, and drives the
processor on one input file until the iteration budget is used up or the
process is interrupted. A memory snapshot is logged after every iteration and
a growth summary is exported at the end.
"""
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from leakwatch.cli.cli import parse_soak_args, validate_soak_args
from leakwatch.config.config_loader import DEFAULT_CONFIG_PATH, ConfigLoader
from leakwatch.config.soak_config import SoakConfig
from leakwatch.consts.FailurePolicy import FailurePolicy
from leakwatch.consts.ProcessorType import ProcessorType
from leakwatch.models.soak_result import SoakResult
from leakwatch.monitor.memory_inspector import MemoryInspector
from leakwatch.service.driver.driver_run_result import DriverRunResult
from leakwatch.service.driver.errors import SoakError
from leakwatch.service.driver.repeat_loop_driver import RepeatLoopDriver
from leakwatch.service.processor.pillow_processor import PillowProcessor
from leakwatch.service.processor.processor import ImageProcessor, NoopProcessor
from leakwatch.service.sink.json_lines_sink import JsonLinesSink
from leakwatch.service.sink.log_sink import LogSink
from leakwatch.service.sink.snapshot_sink import SnapshotSink
from leakwatch.util.conditions import forever, times
from leakwatch.util.log_config import configure_logging, setup_logger

logger = setup_logger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_ABORTED = 2
EXIT_LEAK_SUSPECTED = 3


def build_processor(config: SoakConfig) -> ImageProcessor:
    if config.processor == ProcessorType.PILLOW:
        output_path = Path(config.output_path) if config.output_path else None
        return PillowProcessor(pipeline=config.pipeline, output_path=output_path)
    elif config.processor == ProcessorType.NOOP:
        return NoopProcessor()

    raise ValueError(f"Unsupported processor type: {config.processor}")


def build_sinks(config: SoakConfig) -> List[SnapshotSink]:
    sinks: List[SnapshotSink] = [LogSink()]
    if config.out_dir:
        sinks.append(JsonLinesSink(Path(config.out_dir) / "snapshots.jsonl"))
    return sinks


def apply_overrides(config: SoakConfig, args) -> SoakConfig:
    """Command-line flags win over configuration values"""
    if args.path is not None:
        config.path = args.path
    if args.delay is not None:
        config.delay_seconds = args.delay
    if args.iterations is not None:
        config.iterations = args.iterations
    if args.timeout is not None:
        config.timeout_seconds = args.timeout
    if args.policy is not None:
        config.failure_policy = FailurePolicy(args.policy)
    if args.out_dir is not None:
        config.out_dir = args.out_dir
    return config


async def soak(config: SoakConfig, driver: RepeatLoopDriver, processor: ImageProcessor) -> DriverRunResult:
    """Run the driver, turning SIGINT/SIGTERM into a graceful stop"""
    loop = asyncio.get_running_loop()
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, driver.stop)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # Windows event loops do not support signal handlers
            pass

    condition = times(config.iterations) if config.iterations is not None else forever()
    try:
        return await driver.run(processor, config.path, config.delay_seconds, condition)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def export_result(result: SoakResult, out_dir: Path) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    summary_path = out_dir / "summary.json"
    with open(summary_path, 'w') as f:
        json.dump(result.to_summary_dict(), f, indent=2)
    logger.info(f"✓ Summary exported to: {summary_path.resolve()}")
    return summary_path


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_soak_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    try:
        validate_soak_args(args)
        config = ConfigLoader(args.config_dir or DEFAULT_CONFIG_PATH, env=args.env).config_data
        config = apply_overrides(config, args)
        if config.processor != ProcessorType.NOOP and not Path(config.path).exists():
            raise FileNotFoundError(f"Input image not found: {config.path}")
        processor = build_processor(config)
        inspector = MemoryInspector(trace_heap=config.trace_heap, count_objects=config.count_objects)
        driver = RepeatLoopDriver(
            inspector=inspector,
            timeout=config.timeout_seconds,
            failure_policy=config.failure_policy,
            max_retries=config.max_retries,
            snapshot_window=config.snapshot_window,
        )
    except (ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    logger.info("=" * 60)
    logger.info("Starting Soak Run")
    logger.info("=" * 60)
    if args.env:
        logger.info(f"Loaded configuration with environment override: {args.env}")
    logger.info(f"Input: {config.path} | processor: {config.processor.value} | "
                f"delay: {config.delay_seconds:.3f}s | "
                f"iterations: {config.iterations if config.iterations is not None else 'until interrupted'}")
    logger.debug(str(config))

    inspector.start()
    sinks = build_sinks(config)
    driver.sinks = sinks

    exit_code = EXIT_OK
    try:
        asyncio.run(soak(config, driver, processor))
    except SoakError as e:
        logger.error(f"Soak run aborted: {e}")
        exit_code = EXIT_ABORTED
    finally:
        for sink in sinks:
            sink.close()
        inspector.stop()

    run = driver.result
    trend = run.trend.result(config.leak_threshold_bytes)
    result = SoakResult(
        processor=config.processor.value,
        pipeline=[step.op for step in config.pipeline] if config.processor == ProcessorType.PILLOW else [],
        run=run,
        trend=trend,
    )

    logger.info("=" * 60)
    logger.info("Memory Summary")
    logger.info("=" * 60)
    logger.info(f"  Iterations={run.iterations_completed}, Failures={run.failures}, "
                f"RSS first={trend.first_rss_bytes / 1024 / 1024:.1f}MB, "
                f"last={trend.last_rss_bytes / 1024 / 1024:.1f}MB, "
                f"peak={trend.peak_rss_bytes / 1024 / 1024:.1f}MB")
    logger.info(f"  → Growth={trend.rss_growth_bytes / 1024:+.0f}KB total, "
                f"{trend.rss_growth_per_iteration / 1024:+.1f}KB/iteration")
    if trend.leak_suspected:
        logger.warning(f"Leak suspected: RSS grows {trend.rss_growth_per_iteration / 1024:.1f}KB per iteration "
                       f"(threshold {trend.threshold_bytes_per_iteration / 1024:.1f}KB)")

    if config.out_dir:
        export_result(result, Path(config.out_dir))

    if exit_code == EXIT_OK and args.fail_on_leak and trend.leak_suspected:
        exit_code = EXIT_LEAK_SUSPECTED
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
