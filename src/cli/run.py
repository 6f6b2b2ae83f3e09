import argparse
import asyncio
import logging
import time
from pathlib import Path
from typing import List, Optional

from services.backends import BlobBackend, GitHubContentsBackend, SqliteBlobBackend
from services.config import Config, load_config
from services.errors import ConfigurationError
from services.logging import setup_logging
from services.llm import LLMClient
from services.memory_store import MemoryStore
from services.usage_ledger import UsageLedger, cost_report, log_cost_report
from processing.summarizer import Summarizer
from workflows.aggregator import Aggregator, create_http_client
from workflows.briefing import BriefingPipeline
from delivery.file_delivery import BundleFileWriter


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Gather today's briefing content and update episode memory")
    parser.add_argument("--config", help="Path to config.yml (default: resources/config.yml)")
    parser.add_argument("--dry-run", action="store_true", help="Do not write episode memory")
    parser.add_argument("--summary-file", help="Episode summary produced by the generation stage")
    parser.add_argument("--script-file", help="Episode script produced by the generation stage")
    parser.add_argument(
        "--cost-report",
        nargs="?",
        const=30,
        type=int,
        metavar="DAYS",
        help="Report logged costs for the last DAYS days (default 30) and exit",
    )
    args = parser.parse_args(argv)
    if bool(args.summary_file) != bool(args.script_file):
        parser.error("--summary-file and --script-file must be given together")
    return args


def create_backend(config: Config, client) -> BlobBackend:
    memory = config.memory
    backend = memory.backend.lower()
    if backend == "github":
        if not memory.github_repository:
            raise ConfigurationError("GitHub memory backend requires GITHUB_REPOSITORY")
        return GitHubContentsBackend(
            repository=memory.github_repository,
            token=memory.github_token,
            branch=memory.branch,
            client=client,
        )
    if backend == "sqlite":
        return SqliteBlobBackend(memory.sqlite_path)
    raise ConfigurationError(f"Unknown memory backend: {memory.backend}")


async def main(argv: Optional[List[str]] = None) -> None:
    start_time = time.perf_counter()
    setup_logging()
    logger = logging.getLogger(__name__)
    args = parse_args(argv)

    config = load_config(args.config)

    if args.cost_report is not None:
        log_cost_report(cost_report(config.cost_log_path, days=args.cost_report))
        return

    logger.info(f"Starting briefing run for {config.podcast_id}")

    # ----------------------------
    # Initialize shared services
    # ----------------------------
    llm = None
    if config.llm.enabled:
        llm = LLMClient(
            base_url=config.llm.base_url,
            model=config.llm.model,
            temperature=config.llm.temperature,
            max_retries=config.llm.max_retries,
            timeout=config.llm.timeout,
        )
        if not await llm.health_check():
            logger.warning(f"LLM server at {config.llm.base_url} is not reachable, summaries will be skipped")
            llm = None

    summarizer = Summarizer(llm)
    ledger = UsageLedger(config.rates)

    async with create_http_client() as client:
        aggregator = Aggregator(
            summarizer,
            ledger=ledger,
            client=client,
            timezone=config.timezone,
        )
        memory_store = MemoryStore(
            create_backend(config, client),
            key=config.memory.path,
            commit_message=f"Update {config.podcast_id} episode memory",
        )
        pipeline = BriefingPipeline(config, aggregator, memory_store, summarizer, ledger)

        # ----------------------------
        # Gather content and memory
        # ----------------------------
        run = await pipeline.gather()

        writer = BundleFileWriter(config.output_dir, config.podcast_id)
        json_path, md_path = await writer.deliver(run)
        logger.info(f"Wrote bundle to {json_path} and {md_path}")

        # ----------------------------
        # Record the produced episode
        # ----------------------------
        if args.summary_file and args.script_file:
            if args.dry_run:
                logger.info("Dry run: skipping episode memory update")
            else:
                summary = Path(args.summary_file).read_text(encoding="utf-8")
                script = Path(args.script_file).read_text(encoding="utf-8")
                await pipeline.record_episode(run, summary, script)

    ledger.log_summary()
    ledger.log_to_file(config.cost_log_path)

    logger.info("Briefing run completed")
    end_time = time.perf_counter()
    logger.info(f"Total time: {end_time - start_time:.1f}s")


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
