import logging
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from credibot.ai_feature.service import CompletionError, CompletionService
from credibot.core.config import MAX_SUMMARY_ROWS, SmartChatConfig
from credibot.core.schemas import Record
from credibot.core.storage import StorageError, TableReader
from credibot.core.smart_chat.errors import (
    AnswerSynthesisError,
    DataAnswerError,
    DataFetchError,
    InvalidInputError,
    RoutingError,
)
from credibot.core.smart_chat.extract import extract_query
from credibot.core.smart_chat.summarize import summarize
from credibot.core.smart_chat.tables import resolve_table
from credibot.core.smart_chat.validate import is_safe_read_query


# -----------------------------------------------------------------------------
# SMART CHAT PIPELINE - Orchestration
# Purpose: route a question to a direct answer or to a database-backed answer
# Flow: route -> (direct answer | fetch -> summarize -> data answer)
# Every stage either succeeds or raises its own error; nothing is retried.
# -----------------------------------------------------------------------------


NO_DATABASE_NEEDED = "NO_DATABASE_NEEDED"

ROUTING_PROMPT = f"""Credit analysis assistant with SQL access.

TABLES:
- clientes: nome, score_credito, classe_risco, tipo_pessoa, renda_mensal
- analises_credito: decisao, valor_solicitado, valor_aprovado, cliente_id
- operacoes_credito: valor_contratado, status, modalidade, dias_atraso, cliente_id
- historico_pagamentos: status, valor_pago, dias_atraso, operacao_id
- modalidades_credito: nome, categoria, taxa_minima, taxa_maxima
- score_historico: score_atual, score_anterior, cliente_id

RULES:
1. Only a single SELECT statement is allowed
2. Always use LIMIT (max 50)
3. If data is needed, answer EXACTLY "SQL: [query without formatting]"
4. If no data is needed, answer "{NO_DATABASE_NEEDED}"
5. Do NOT use markdown, code blocks or any formatting

EXAMPLE: SQL: SELECT nome FROM clientes LIMIT 10"""

DIRECT_ANSWER_PROMPT = """You are an assistant specialized in credit analysis and financial services.

Answer questions about:
- Credit and financing concepts
- Risk analysis
- Credit scores
- Loan types
- Financial education

Be professional, clear and informative."""

DATA_ANSWER_PROMPT = """You are an assistant specialized in credit analysis.

Using the data retrieved from the database, answer the user's question in a natural and informative way.

INSTRUCTIONS:
- Use the provided data to answer
- Be clear and objective
- Format numbers properly (currency values in R$, percentages with %)
- Highlight important information
- If there is no data, say that no records were found
- Keep the answer under 300 words

QUESTION: {question}

DATA SUMMARY:
{summary}"""


class PipelineStep(Enum):
    """Individual pipeline steps."""

    PIPELINE = "pipeline"
    ROUTE = "route"
    FETCH = "fetch"
    SUMMARIZE = "summarize"
    ANSWER = "answer"


# Configure logging for pipeline
logger = logging.getLogger(__name__)


class PipelineLogger:
    """Tags every stage message with the request id."""

    def __init__(self, request_id: str):
        self.request_id = request_id
        self.started = time.monotonic()

    def elapsed(self) -> float:
        return time.monotonic() - self.started

    def log(self, step: PipelineStep, message: str, level: int = logging.INFO):
        logger.log(level, f"[Request {self.request_id}] {step.value}: {message}")


@dataclass(frozen=True)
class RoutingDecision:
    needs_data: bool
    query: Optional[str] = None


@dataclass
class SmartAnswer:
    answer: str
    used_data: bool
    executed_query: Optional[str] = None


def _preview(text: str, size: int = 80) -> str:
    text = " ".join(text.split())
    return text if len(text) <= size else text[:size] + "..."


class SmartChatPipeline:
    """
    Answers a question directly or through a validated read-only query.

    Collaborators are injected so tests can swap in fakes:
        completions: language model (routing + one answer call)
        reader: storage read for the resolved table

    Example:
        pipeline = SmartChatPipeline(completions, reader, SmartChatConfig())
        result = await pipeline.answer("How many clients are high risk?")
        result.used_data, result.executed_query
    """

    def __init__(
        self,
        completions: CompletionService,
        reader: TableReader,
        config: Optional[SmartChatConfig] = None,
    ):
        self.completions = completions
        self.reader = reader
        self.config = config or SmartChatConfig()

    async def answer(
        self,
        question: str,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> SmartAnswer:
        """
        Run the whole pipeline for one question.

        Args:
            question: User question (must not be blank)
            model: Overrides the configured model for every call
            max_tokens: Overrides the output budget of the final answer call

        Raises:
            InvalidInputError, RoutingError, DataFetchError, AnswerSynthesisError
        """
        if question is None or not question.strip():
            raise InvalidInputError("Message is required")

        model = model or self.config.model
        pipeline_logger = PipelineLogger(uuid.uuid4().hex[:8])
        pipeline_logger.log(PipelineStep.PIPELINE, f"Question: {_preview(question)}")

        decision = await self.route(question, model, pipeline_logger)

        if not decision.needs_data:
            answer = await self.answer_directly(
                question, model, max_tokens, pipeline_logger
            )
            pipeline_logger.log(PipelineStep.PIPELINE, "Answered without database")
            return SmartAnswer(answer=answer, used_data=False)

        records = await self.fetch_records(decision.query, pipeline_logger)
        data_summary = summarize(records)
        pipeline_logger.log(
            PipelineStep.SUMMARIZE, f"Summary built from {len(records)} records"
        )

        answer = await self.answer_with_data(
            question, data_summary, model, max_tokens, pipeline_logger
        )
        pipeline_logger.log(
            PipelineStep.PIPELINE,
            f"Answered with database in {pipeline_logger.elapsed():.2f}s",
        )
        return SmartAnswer(answer=answer, used_data=True, executed_query=decision.query)

    async def route(
        self, question: str, model: str, pipeline_logger: PipelineLogger
    ) -> RoutingDecision:
        """
        Ask the model whether the question needs data.

        An unparseable or unsafe query is a RoutingError, never a silent
        fallback to the direct answer.
        """
        try:
            completion = await self.completions.complete(
                question,
                model=model,
                max_tokens=self.config.routing_max_tokens,
                temperature=self.config.routing_temperature,
                system=ROUTING_PROMPT,
            )
        except CompletionError as e:
            pipeline_logger.log(
                PipelineStep.ROUTE, f"Routing call failed: {e}", logging.ERROR
            )
            raise RoutingError(str(e)) from e

        reply = completion.text.strip()
        if reply == NO_DATABASE_NEEDED:
            pipeline_logger.log(PipelineStep.ROUTE, "No database needed")
            return RoutingDecision(needs_data=False)

        query = extract_query(reply)
        if not query:
            pipeline_logger.log(
                PipelineStep.ROUTE, f"No query in model reply: {_preview(reply)}",
                logging.ERROR,
            )
            raise RoutingError("no SQL query found in model response")

        if not is_safe_read_query(query):
            pipeline_logger.log(
                PipelineStep.ROUTE, f"Rejected query: {query}", logging.ERROR
            )
            raise RoutingError("invalid or unsafe SQL query generated")

        pipeline_logger.log(PipelineStep.ROUTE, f"Query accepted: {query}")
        return RoutingDecision(needs_data=True, query=query)

    async def answer_directly(
        self,
        question: str,
        model: str,
        max_tokens: Optional[int],
        pipeline_logger: PipelineLogger,
    ) -> str:
        try:
            completion = await self.completions.complete(
                question,
                model=model,
                max_tokens=max_tokens or self.config.direct_answer_max_tokens,
                temperature=self.config.temperature,
                system=DIRECT_ANSWER_PROMPT,
            )
        except CompletionError as e:
            pipeline_logger.log(
                PipelineStep.ANSWER, f"Direct answer failed: {e}", logging.ERROR
            )
            raise AnswerSynthesisError(str(e)) from e
        return completion.text

    async def fetch_records(
        self, query: str, pipeline_logger: PipelineLogger
    ) -> List[Record]:
        """
        Read the table the query targets, newest first.
        Only the first summary_row_limit rows (at most 10) are kept.
        """
        table_name = resolve_table(query)
        pipeline_logger.log(PipelineStep.FETCH, f"Reading table {table_name}")

        try:
            records = await self.reader.read(
                table_name,
                limit=self.config.query_row_limit,
                order_by=self.config.order_field,
                descending=True,
            )
        except StorageError as e:
            pipeline_logger.log(
                PipelineStep.FETCH, f"Read failed: {e}", logging.ERROR
            )
            raise DataFetchError(str(e)) from e

        keep = min(self.config.summary_row_limit, MAX_SUMMARY_ROWS)
        if len(records) > keep:
            pipeline_logger.log(
                PipelineStep.FETCH,
                f"{len(records)} rows returned, keeping {keep}",
                logging.WARNING,
            )
        return records[:keep]

    async def answer_with_data(
        self,
        question: str,
        data_summary: str,
        model: str,
        max_tokens: Optional[int],
        pipeline_logger: PipelineLogger,
    ) -> str:
        system = DATA_ANSWER_PROMPT.format(question=question, summary=data_summary)
        try:
            completion = await self.completions.complete(
                question,
                model=model,
                max_tokens=max_tokens or self.config.data_answer_max_tokens,
                temperature=self.config.temperature,
                system=system,
            )
        except CompletionError as e:
            pipeline_logger.log(
                PipelineStep.ANSWER, f"Data answer failed: {e}", logging.ERROR
            )
            raise DataAnswerError(str(e)) from e
        return completion.text
