#!/usr/bin/env python
"""
查询增强命令行入口

示例：
    python run.py "iPhone vs Android" --mode quality
    python run.py "What is the capital of France?" --offline
"""
import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from query_pipeline.config import settings  # noqa: E402
from query_pipeline.core.exceptions import ConfigurationError  # noqa: E402
from query_pipeline.core.logging_config import LEVELS, OperationLogger, setup_logging  # noqa: E402
from query_pipeline.langchain.routers import EnhancementRouter, SearchMode  # noqa: E402

logger = logging.getLogger("query_pipeline.run")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Adaptive query enhancement')
    parser.add_argument('query', type=str, help='用户查询')
    parser.add_argument('--mode', type=str, default=settings.DEFAULT_SEARCH_MODE,
                        choices=[m.value for m in SearchMode], help='搜索模式')
    parser.add_argument('--history', type=str, action='append', default=[],
                        help='对话历史，可重复指定，按时间顺序')
    parser.add_argument('--provider', type=str, default=None, help='LLM 提供方')
    parser.add_argument('--offline', action='store_true', help='不调用任何模型，只使用回退逻辑')
    parser.add_argument('--log-level', type=str.upper, default=None, choices=LEVELS,
                        help='日志级别，默认取 LOG_LEVEL')
    return parser.parse_args(argv)


def build_router(args) -> EnhancementRouter:
    if args.offline:
        return EnhancementRouter()

    from query_pipeline.langchain.llm import get_available_providers, get_embeddings, get_llm

    # Embedding 走 OpenAI 兼容接口，没有凭据时跳过语义扩展
    embeddings = get_embeddings() if "openai" in get_available_providers() else None
    if embeddings is None:
        logger.warning("OPENAI_API_KEY not set, semantic expansion disabled")

    return EnhancementRouter(llm=get_llm(provider=args.provider), embeddings=embeddings)


async def run(args) -> int:
    try:
        router = build_router(args)
        async with OperationLogger(
            logger,
            f"enhance [{args.mode}]",
            slow_ms=router.timeout * 1000 * 0.8,
        ):
            result = await router.enhance(args.query, args.history, mode=args.mode)
    except ConfigurationError as e:
        logger.error(str(e))
        print(json.dumps(e.to_dict(), ensure_ascii=False), file=sys.stderr)
        return 2

    print(result.model_dump_json(indent=2))
    return 0


def main(argv=None):
    args = parse_args(argv)
    setup_logging(level=args.log_level)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
