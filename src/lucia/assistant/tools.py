#!/usr/bin/env python3
"""
Assistant Tools for Lucia.

Defines the three tools the assistant can call during a run (price lookup,
Spot inventory lookup, lead qualification) and the registry that dispatches
a batch of tool calls to them.

Tool outputs are JSON strings. Handlers never raise: every failure becomes an
``{"error": ...}`` payload, because a run left without outputs stays stuck in
``requires_action``.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx

from lucia.catalog.store import CatalogStore, like_pattern
from lucia.catalog.tables import precos, produtos, spot_precos, spot_produtos
from lucia.core.errors import AmbiguousMatch, NotFound, ToolArgumentsError

logger = logging.getLogger(__name__)


# =============================================================================
# Tool Messages
# =============================================================================

PRODUCT_NOT_FOUND = "Produto não encontrado."
PRICE_NOT_FOUND = "Não foi possível encontrar um preço para esta combinação."
PRICE_INTERNAL_ERROR = "Ocorreu um erro interno ao buscar o preço."

SPOT_PRODUCT_NOT_FOUND = "Produto não encontrado no catálogo Spot."
SPOT_PRICE_NOT_FOUND = "Preço não disponível para esta quantidade."
SPOT_INTERNAL_ERROR = "Ocorreu um erro interno ao buscar o produto Spot."

LEAD_SKIPPED = "Qualificação registrada, mas notificação pulada."
LEAD_SENT = "Lead enviado para a equipe."
LEAD_ERROR = "Ocorreu um erro ao notificar a equipe."


# =============================================================================
# Tools Schema for the Assistant
# =============================================================================

TOOLS_SCHEMA = [
    {
        "type": "function",
        "function": {
            "name": "buscar_preco_final",
            "description": (
                "Busca o preço unitário final de um produto do catálogo principal "
                "para uma quantidade e um número de áreas de personalização."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "nome_produto": {
                        "type": "string",
                        "description": "Nome (ou parte do nome) do produto."
                    },
                    "quantidade": {
                        "type": "integer",
                        "description": "Quantidade de unidades desejada."
                    },
                    "areas_personalizacao": {
                        "type": "integer",
                        "description": "Número de áreas de personalização."
                    }
                },
                "required": ["nome_produto", "quantidade", "areas_personalizacao"]
            }
        }
    },
    {
        "type": "function",
        "function": {
            "name": "buscar_estoque_spot",
            "description": (
                "Busca um produto do catálogo Spot (por referência ou nome) e "
                "calcula o preço unitário e total para a quantidade pedida."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "nome_produto": {
                        "type": "string",
                        "description": "Referência Spot exata ou parte do nome do produto."
                    },
                    "quantidade": {
                        "type": "integer",
                        "description": "Quantidade de unidades desejada."
                    }
                },
                "required": ["nome_produto", "quantidade"]
            }
        }
    },
    {
        "type": "function",
        "function": {
            "name": "finalizar_qualificacao",
            "description": (
                "Finaliza a qualificação do lead e notifica a equipe comercial. "
                "Chame ao final da conversa com a classificação e um resumo."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "classificacao": {
                        "type": "string",
                        "description": "Classificação do lead (ex.: quente, morno, frio)."
                    },
                    "resumo": {
                        "type": "string",
                        "description": "Resumo da conversa e das necessidades do cliente."
                    }
                },
                "required": ["classificacao", "resumo"]
            }
        }
    }
]


def _as_int(value: Any, name: str) -> int:
    """Coerce a tool argument to int, rejecting fractional values."""
    if isinstance(value, bool):
        raise ValueError(f"'{name}' must be an integer")
    number = float(value)
    if not number.is_integer():
        raise ValueError(f"'{name}' must be an integer, got {value!r}")
    return int(number)


# =============================================================================
# Catalog Tools
# =============================================================================

class CatalogTools:
    """
    Handlers for the assistant's tools.

    Each public method returns a JSON-serializable dict and never raises.
    """

    def __init__(
        self,
        store: CatalogStore,
        webhook_url: Optional[str] = None,
        webhook_timeout: Optional[float] = None,
        http_client: Optional[httpx.Client] = None
    ):
        """
        Args:
            store: Catalog store to query
            webhook_url: Lead notification webhook (None disables notification)
            webhook_timeout: Timeout for the webhook call (None waits indefinitely)
            http_client: httpx client used for the webhook (created if not provided)
        """
        self.store = store
        self.webhook_url = webhook_url
        self.webhook_timeout = webhook_timeout
        self.http_client = http_client or httpx.Client()

    def price_lookup(self, nome_produto: str, quantidade: Any, areas_personalizacao: Any) -> Dict[str, Any]:
        """
        Look up the unit price of a main-catalog product.

        Returns the unit price only; callers multiply by quantity themselves.
        """
        logger.info(f"--> buscar_preco_final: {nome_produto}, {quantidade}, {areas_personalizacao} áreas")
        try:
            quantity = _as_int(quantidade, "quantidade")
            areas = _as_int(areas_personalizacao, "areas_personalizacao")

            try:
                product = self.store.find_one(
                    produtos,
                    produtos.c.nome_produto.ilike(like_pattern(str(nome_produto)), escape="\\"),
                    columns=["sku_base"],
                )
                if product is None:
                    raise NotFound(f"No product matches '{nome_produto}'")
            except (NotFound, AmbiguousMatch) as e:
                logger.warning(f"Product lookup failed: {e}")
                return {"error": PRODUCT_NOT_FOUND}

            try:
                price = self.store.find_one(
                    precos,
                    precos.c.produto_sku == product["sku_base"],
                    precos.c.num_areas == areas,
                    precos.c.quantidade_min <= quantity,
                    precos.c.quantidade_max >= quantity,
                    columns=["preco_unitario"],
                )
                if price is None:
                    raise NotFound(f"No price tier for {product['sku_base']} x{quantity} ({areas} areas)")
            except (NotFound, AmbiguousMatch) as e:
                logger.warning(f"Price lookup failed: {e}")
                return {"error": PRICE_NOT_FOUND}

            logger.info(f"<-- Preço final encontrado: R$ {price['preco_unitario']}")
            return {"preco_final": price["preco_unitario"]}

        except Exception as e:
            logger.error(f"Error in buscar_preco_final: {e}")
            return {"error": PRICE_INTERNAL_ERROR}

    def _find_spot_product(self, nome_produto: str) -> Optional[Dict[str, Any]]:
        columns = ["id", "referencia_spot", "nome_produto", "descricao_curta", "preco_custo_base"]

        # An AmbiguousMatch here propagates and skips the name fallback
        product = self.store.find_one(
            spot_produtos,
            spot_produtos.c.referencia_spot == nome_produto,
            columns=columns,
        )
        if product is None:
            product = self.store.find_one(
                spot_produtos,
                spot_produtos.c.nome_produto.ilike(like_pattern(nome_produto), escape="\\"),
                columns=columns,
            )
        return product

    def spot_inventory_lookup(self, nome_produto: str, quantidade: Any) -> Dict[str, Any]:
        """Look up a Spot product and price the requested quantity."""
        logger.info(f"--> buscar_estoque_spot: {nome_produto}, quantidade: {quantidade}")
        try:
            quantity = _as_int(quantidade, "quantidade")

            try:
                product = self._find_spot_product(str(nome_produto))
                if product is None:
                    raise NotFound(f"No Spot product matches '{nome_produto}'")
            except (NotFound, AmbiguousMatch) as e:
                logger.warning(f"Spot product lookup failed: {e}")
                return {"error": SPOT_PRODUCT_NOT_FOUND}

            try:
                price = self.store.find_one(
                    spot_precos,
                    spot_precos.c.produto_id == product["id"],
                    spot_precos.c.quantidade_minima <= quantity,
                    spot_precos.c.quantidade_maxima >= quantity,
                    columns=["preco_unitario", "quantidade_minima", "quantidade_maxima"],
                )
                if price is None:
                    raise NotFound(f"No Spot price tier for {product['referencia_spot']} x{quantity}")
            except (NotFound, AmbiguousMatch) as e:
                logger.warning(f"Spot price lookup failed: {e}")
                return {"error": SPOT_PRICE_NOT_FOUND}

            unit_price = price["preco_unitario"]
            total_price = unit_price * quantity

            logger.info(f"<-- Produto Spot encontrado: R$ {unit_price} (unitário), R$ {total_price} (total)")
            return {
                "referencia": product["referencia_spot"],
                "nome": product["nome_produto"],
                "descricao": product["descricao_curta"],
                "quantidade_solicitada": quantity,
                "preco_unitario": unit_price,
                "preco_total": total_price,
                "disponivel": True,
            }

        except Exception as e:
            logger.error(f"Error in buscar_estoque_spot: {e}")
            return {"error": SPOT_INTERNAL_ERROR}

    def qualify_lead(self, classificacao: str, resumo: str) -> Dict[str, Any]:
        """
        Notify the sales team about a qualified lead.

        A missing webhook URL is a successful no-op.
        """
        logger.info(f"--> finalizar_qualificacao: {classificacao}")
        if not self.webhook_url:
            logger.warning("Lead webhook URL not configured. Skipping notification.")
            return {"status": "sucesso", "mensagem": LEAD_SKIPPED}

        try:
            response = self.http_client.post(
                self.webhook_url,
                json={"classificacao": classificacao, "resumo": resumo},
                timeout=self.webhook_timeout,
            )
            response.raise_for_status()
        except Exception as e:
            logger.error(f"Error calling lead webhook: {e}")
            return {"error": LEAD_ERROR}

        logger.info("<-- Lead webhook called successfully")
        return {"status": "sucesso", "mensagem": LEAD_SENT}


# =============================================================================
# Tool Registry
# =============================================================================

ToolHandler = Callable[..., Dict[str, Any]]


class ToolRegistry:
    """
    Maps tool names to handlers and dispatches a round of tool calls.
    """

    def __init__(self, max_workers: int = 1):
        self.max_workers = max(1, max_workers)
        self._handlers: Dict[str, ToolHandler] = {}

    def register(self, name: str, handler: ToolHandler) -> None:
        self._handlers[name] = handler

    @property
    def names(self) -> List[str]:
        return list(self._handlers)

    def __contains__(self, name: str) -> bool:
        return name in self._handlers

    def invoke(self, name: str, arguments: Dict[str, Any]) -> str:
        """
        Run one tool and return its JSON output.

        Unknown tools and handler exceptions become error payloads.
        """
        logger.info(f"Tool call: {name}")
        logger.debug(f"Tool input: {json.dumps(arguments, ensure_ascii=False)}")

        handler = self._handlers.get(name)
        if handler is None:
            logger.warning(f"Unknown tool requested: {name}")
            return json.dumps({"error": f"Unknown tool: {name}"})

        try:
            result = handler(**arguments)
        except Exception as e:
            logger.error(f"Tool error ({name}): {e}")
            result = {"error": str(e)}

        return json.dumps(result, ensure_ascii=False)

    @staticmethod
    def parse_arguments(tool_call: Any) -> Dict[str, Any]:
        """
        Decode a tool call's argument payload.

        Raises:
            ToolArgumentsError: If the payload is not a JSON object
        """
        raw = tool_call.function.arguments
        try:
            arguments = json.loads(raw) if raw else {}
        except (TypeError, ValueError):
            raise ToolArgumentsError(tool_call.function.name, tool_call.id, raw)
        if not isinstance(arguments, dict):
            raise ToolArgumentsError(tool_call.function.name, tool_call.id, raw)
        return arguments

    def dispatch(self, tool_calls: Sequence[Any]) -> List[Dict[str, str]]:
        """
        Run every tool call of one ``requires_action`` round.

        Arguments are parsed up front so a malformed payload fails the round
        before any handler has side effects. Outputs keep the order of
        ``tool_calls``.

        Returns:
            List of ``{"tool_call_id", "output"}`` dicts, one per call
        """
        parsed = [(call, self.parse_arguments(call)) for call in tool_calls]

        def run(item):
            call, arguments = item
            return {"tool_call_id": call.id, "output": self.invoke(call.function.name, arguments)}

        if self.max_workers == 1 or len(parsed) <= 1:
            return [run(item) for item in parsed]

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(parsed))) as executor:
            return list(executor.map(run, parsed))


def create_tool_registry(tools: CatalogTools, max_workers: int = 1) -> ToolRegistry:
    """
    Create a registry exposing the catalog tools under their assistant names.

    Args:
        tools: A CatalogTools instance
        max_workers: Concurrent tool calls per round (1 = sequential)
    """
    registry = ToolRegistry(max_workers=max_workers)
    registry.register("buscar_preco_final", tools.price_lookup)
    registry.register("buscar_estoque_spot", tools.spot_inventory_lookup)
    registry.register("finalizar_qualificacao", tools.qualify_lead)
    return registry
