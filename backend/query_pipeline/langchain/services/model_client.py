"""
外部模型调用封装

统一 LLM 补全与 Embedding 调用：
1. 每次调用都有超时上限，超时与其他失败同等处理
2. 所有失败统一转换为 LLMError / EmbeddingError，由调用方降级
3. 不做重试，重试属于客户端自身的职责
"""
from typing import Any, Dict, List, Optional
import asyncio
import json
import logging
import re

from query_pipeline.config import settings
from query_pipeline.core.exceptions import EmbeddingError, LLMError, ParsingError

logger = logging.getLogger(__name__)

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


class ModelClient:
    """
    LLM / Embedding 调用网关

    llm 需提供 ainvoke(prompt)，embeddings 需提供 aembed_query(text)，
    与 langchain 的 BaseChatModel / Embeddings 接口一致
    """

    def __init__(
        self,
        llm: Optional[Any] = None,
        embeddings: Optional[Any] = None,
        llm_timeout: Optional[float] = None,
        embedding_timeout: Optional[float] = None,
        max_concurrent_calls: Optional[int] = None,
    ):
        self.llm = llm
        self.embeddings = embeddings
        self.llm_timeout = llm_timeout if llm_timeout is not None else settings.LLM_TIMEOUT_SECONDS
        self.embedding_timeout = (
            embedding_timeout if embedding_timeout is not None else settings.EMBEDDING_TIMEOUT_SECONDS
        )
        self.max_concurrent_calls = max(1, max_concurrent_calls or settings.MAX_CONCURRENT_LLM_CALLS)

    @property
    def has_llm(self) -> bool:
        return self.llm is not None

    @property
    def has_embeddings(self) -> bool:
        return self.embeddings is not None

    async def complete(self, prompt: str) -> str:
        """调用 LLM 生成文本"""
        if self.llm is None:
            raise LLMError("LLM service not configured")
        if not hasattr(self.llm, "ainvoke"):
            raise LLMError(f"LLM client {type(self.llm).__name__} does not support ainvoke")

        try:
            response = await asyncio.wait_for(
                self.llm.ainvoke(prompt),
                timeout=self.llm_timeout,
            )
        except asyncio.TimeoutError as e:
            raise LLMError(
                f"LLM call timed out after {self.llm_timeout}s",
                timeout=self.llm_timeout,
                cause=e,
            ) from e
        except Exception as e:
            raise LLMError(f"LLM call failed: {e}", cause=e) from e

        return _response_text(response).strip()

    async def embed(self, text: str) -> List[float]:
        """获取文本向量"""
        if self.embeddings is None:
            raise EmbeddingError("Embedding service not configured")

        try:
            vector = await asyncio.wait_for(
                self.embeddings.aembed_query(text),
                timeout=self.embedding_timeout,
            )
        except asyncio.TimeoutError as e:
            raise EmbeddingError(
                f"Embedding call timed out after {self.embedding_timeout}s",
                cause=e,
            ) from e
        except Exception as e:
            raise EmbeddingError(f"Embedding call failed: {e}", cause=e) from e

        try:
            vector = [float(x) for x in vector]
        except (TypeError, ValueError) as e:
            raise EmbeddingError(f"Embedding service returned an invalid vector: {e}", cause=e) from e

        if len(vector) == 0:
            raise EmbeddingError("Embedding service returned an empty vector")

        return vector

    def new_call_limiter(self) -> asyncio.Semaphore:
        """创建单次请求内的并发上限"""
        return asyncio.Semaphore(self.max_concurrent_calls)


def _response_text(response: Any) -> str:
    """从 LLM 响应中取出文本"""
    if isinstance(response, str):
        return response

    content = getattr(response, "content", response)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)

    return str(content)


def parse_json_response(content: str) -> Dict[str, Any]:
    """
    解析 LLM 返回的 JSON 对象

    兼容 ```json 代码块以及 JSON 前后夹带说明文字的情况
    """
    text = (content or "").strip()
    if text.startswith("```"):
        text = text.strip("`").strip()
        if text.lower().startswith("json"):
            text = text[4:].strip()

    try:
        result = json.loads(text)
    except json.JSONDecodeError:
        match = _JSON_OBJECT_RE.search(text)
        if not match:
            raise ParsingError("No JSON object found in LLM response", raw_content=content)
        try:
            result = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ParsingError("Invalid JSON in LLM response", raw_content=content, cause=e) from e

    if not isinstance(result, dict):
        raise ParsingError("LLM response is not a JSON object", raw_content=content)

    return result
