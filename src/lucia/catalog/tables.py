"""
Catalog table definitions.

Tables are declared without a schema; the configured schema (``comercial`` in
production) is applied per engine through ``schema_translate_map`` so the same
definitions work against SQLite in tests.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

metadata = MetaData()


# =============================================================================
# Main catalog (maintained outside this service, read by buscar_preco_final)
# =============================================================================

produtos = Table(
    "produtos",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("sku_base", String(255), unique=True, nullable=False),
    Column("nome_produto", String(255), nullable=False),
    Column("descricao", Text),
    Column("dimensoes", String(255)),
    Column("material", String(255)),
    Column("custo_base", Float),
    Column("ativo", Boolean, default=True),
)

precos = Table(
    "precos",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("produto_sku", String(255), nullable=False, index=True),
    Column("num_areas", Integer, nullable=False),
    Column("quantidade_min", Integer, nullable=False),
    Column("quantidade_max", Integer, nullable=False),
    Column("preco_unitario", Float, nullable=False),
)


# =============================================================================
# Spot catalog (written by the Stricker sync, read by buscar_estoque_spot)
# =============================================================================

spot_cores = Table(
    "spot_cores",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("codigo_cor", String(255), unique=True, nullable=False),
    Column("nome_cor", String(255)),
)

spot_produtos = Table(
    "spot_produtos",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("referencia_spot", String(255), unique=True, nullable=False),
    Column("nome_produto", String(255)),
    Column("descricao_curta", String(255)),
    Column("descricao_completa", Text),
    Column("material", String(255)),
    Column("dimensoes", String(255)),
    Column("peso_aprox", String(255)),
    Column("cores_disponiveis", Text),
    Column("preco_custo_base", Float),
    Column("fornecedor", String(255)),
    Column("imagem_principal", String(255)),
    Column("ativo", Boolean, default=True),
)

spot_precos = Table(
    "spot_precos",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("sku", String(255), unique=True, nullable=False),
    Column("referencia_spot", String(255), index=True),
    Column("produto_id", Integer, ForeignKey("spot_produtos.id"), nullable=True, index=True),
    Column("quantidade_minima", Integer, nullable=False),
    Column("quantidade_maxima", Integer, nullable=False),
    Column("preco_unitario", Float, nullable=False),
)
