from sqlmodel import SQLModel, create_engine, Session, select
from sqlalchemy import event
from sqlalchemy.pool import StaticPool

from .config import CONFIG

# Modelli (solo import: registrano le tabelle nel metadata)
from .models import Product, Profile, Order, OrderItem, OrderStatusHistory  # noqa: F401
from .models_customizations import OptionGroup, ProductOption, OrderItemOption  # noqa: F401


def _set_sqlite_pragmas(dbapi_connection, connection_record):
    cur = dbapi_connection.cursor()
    # WAL migliora i read paralleli con write
    cur.execute("PRAGMA journal_mode=WAL;")
    # Timeout quando il DB è lockato da un writer
    cur.execute("PRAGMA busy_timeout=30000;")
    cur.close()


# ---- Engine ----
def make_engine(url: str, echo: bool = False):
    """Engine con pool adatto al backend; "sqlite://" (memoria) usa una sola connessione condivisa."""
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    is_sqlite = url.startswith("sqlite")
    connect_args = {"check_same_thread": False, "timeout": 30} if is_sqlite else {}
    eng = create_engine(
        url,
        echo=echo,
        connect_args=connect_args,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        pool_timeout=10,
        pool_recycle=1800,
    )
    if is_sqlite:
        event.listen(eng, "connect", _set_sqlite_pragmas)
    return eng


engine = make_engine(CONFIG.database.url, echo=CONFIG.database.echo)


# ---- Schema ----
def create_db_and_tables(bind=None):
    SQLModel.metadata.create_all(bind or engine)


# ---- Sessioni: dipendenza FastAPI ----
def get_session_dep():
    """Dipendenza per FastAPI: garantisce sempre la chiusura della sessione."""
    with Session(engine, expire_on_commit=False) as session:
        yield session


# ---- Seed ----
MENU_SEED = [
    {
        "name": "Bacon Bull",
        "description": "Carne no ponto, cheddar, bacon crocante e picles de cebola roxa.",
        "price_cents": 2900,
        "groups": [
            {"name": "Adicionais", "required": False, "min_select": 0, "max_select": 3,
             "options": [("Bacon extra", 500), ("Cheddar extra", 400), ("Ovo", 300)]},
        ],
    },
    {
        "name": "Chicken",
        "description": "Frango grelhado, muçarela, alface, cebola branca e maionese.",
        "price_cents": 2300,
        "groups": [
            {"name": "Ponto do pão", "required": True, "min_select": 1, "max_select": 1,
             "options": [("Brioche", 0), ("Australiano", 200)]},
        ],
    },
    {
        "name": "Sallad Burguer",
        "description": "Alface, tomate, cebola roxa, queijo prato e hambúrguer artesanal.",
        "price_cents": 2600,
        "groups": [],
    },
    {
        "name": "Big Black Taurus Bacon",
        "description": "Duas carnes no carvão, cheddar duplo, bacon e barbecue artesanal.",
        "price_cents": 4400,
        "original_price_cents": 4900,
        "groups": [
            {"name": "Adicionais", "required": False, "min_select": 0, "max_select": 2,
             "options": [("Bacon extra", 500), ("Barbecue extra", 200)]},
        ],
    },
]


def seed_if_empty(bind=None):
    """Seed del menu: una sola sessione, chiusa correttamente."""
    with Session(bind or engine) as session:
        if session.exec(select(Product)).first():
            return
        for entry in MENU_SEED:
            p = Product(
                name=entry["name"],
                description=entry.get("description"),
                price_cents=entry["price_cents"],
                original_price_cents=entry.get("original_price_cents"),
            )
            session.add(p)
            session.flush()
            for g_pos, g in enumerate(entry["groups"]):
                grp = OptionGroup(
                    product_id=p.id,
                    name=g["name"],
                    required=g["required"],
                    min_select=g["min_select"],
                    max_select=g["max_select"],
                    position=g_pos,
                )
                session.add(grp)
                session.flush()
                session.add_all([
                    ProductOption(group_id=grp.id, name=name, price_cents=cents, position=o_pos)
                    for o_pos, (name, cents) in enumerate(g["options"])
                ])
        session.commit()
