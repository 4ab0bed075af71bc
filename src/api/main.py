"""
FastAPI backend: REST API over the family tree store.
Run with uvicorn: uvicorn api.main:app --reload
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from repo root (when run from repo root or from Docker)
for path in (
    Path(__file__).resolve().parent.parent.parent / ".env",
    Path.cwd() / ".env",
):
    if path.exists():
        load_dotenv(path)
        break

from contextlib import asynccontextmanager
from datetime import date

from fastapi import APIRouter, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel

from famitree.application import (
    CurrentUser,
    FamilyGraph,
    FamilyTreeStore,
    TreeBuilder,
    TreeNode,
    branch_stats,
    filter_tree_by_query,
    get_branch_person_ids,
    get_main_person_ids,
    upcoming_birthdays,
    upcoming_death_anniversaries,
)
from famitree.domain import Gender, MemberRole, ParentChildSubtype, Person, ValidationError
from famitree.infrastructure import (
    ContextUserProvider,
    FilePersistence,
    JsonStateCodec,
    export_people_csv,
    import_people_csv,
)

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
)
logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"
DEFAULT_DB_FILE = "data/famitree.json"
DEFAULT_ADMIN_USERS = "admin"
DEFAULT_ANCESTOR_LEVELS = 5
DEFAULT_REMINDER_LIMIT = 10


def _admin_ids_from_env() -> list[str]:
    raw = os.environ.get("FAMITREE_ADMIN_USERS", DEFAULT_ADMIN_USERS)
    return [part.strip() for part in raw.split(",") if part.strip()]


def _build_store(users: ContextUserProvider) -> FamilyTreeStore:
    db_file = os.environ.get("FAMITREE_DB_FILE", DEFAULT_DB_FILE).strip() or DEFAULT_DB_FILE
    logger.info("Family tree file: %s", db_file)
    store = FamilyTreeStore(FilePersistence(db_file), users, JsonStateCodec())
    store.load()
    return store


def _get_users(app: FastAPI) -> ContextUserProvider:
    if getattr(app.state, "users", None) is None:
        app.state.users = ContextUserProvider(_admin_ids_from_env())
    return app.state.users


def _get_store(app: FastAPI) -> FamilyTreeStore:
    if getattr(app.state, "store", None) is None:
        app.state.store = _build_store(_get_users(app))
    return app.state.store


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        _get_store(app)
        yield
    finally:
        if getattr(app.state, "store", None) is not None:
            app.state.store.close()


def create_app(
    store: FamilyTreeStore | None = None,
    users: ContextUserProvider | None = None,
) -> FastAPI:
    """Composition root. Pass store and users to inject them (tests); otherwise built from env."""
    application = FastAPI(title="Famitree API", lifespan=lifespan)
    application.state.store = store
    application.state.users = users
    application.include_router(router)
    return application


# --- request/response bodies ---


class PersonBody(BaseModel):
    name: str
    title: str | None = None
    address: str | None = None
    birth_place: str | None = None
    birth_date: str | None = None
    death_date: str | None = None
    buried_at: str | None = None
    gender: Gender | None = None
    notes: str | None = None
    avatar: str | None = None
    member_role: MemberRole = MemberRole.MAIN


class PersonPatch(BaseModel):
    name: str | None = None
    title: str | None = None
    address: str | None = None
    birth_place: str | None = None
    birth_date: str | None = None
    death_date: str | None = None
    buried_at: str | None = None
    gender: Gender | None = None
    notes: str | None = None
    avatar: str | None = None
    member_role: MemberRole | None = None


class ParentChildBody(BaseModel):
    parent_id: str
    child_id: str
    subtype: ParentChildSubtype = ParentChildSubtype.PLAIN


class SpouseBody(BaseModel):
    person_id: str
    spouse_id: str


class DefaultBranchBody(BaseModel):
    person_id: str | None = None


def _person_dict(p: Person) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "title": p.title,
        "address": p.address,
        "birth_place": p.birth_place,
        "birth_date": p.birth_date,
        "death_date": p.death_date,
        "buried_at": p.buried_at,
        "gender": p.gender.value if p.gender else None,
        "notes": p.notes,
        "avatar": p.avatar,
        "member_role": p.member_role.value,
    }


def _node_dict(node: TreeNode, main_ids: set[str]) -> dict:
    return {
        "person": _person_dict(node.person),
        "spouses": [
            {"person": _person_dict(s), "index": i, "is_main": s.id in main_ids}
            for i, s in enumerate(node.spouses, start=1)
        ],
        "children": [_node_dict(child, main_ids) for child in node.children],
    }


# --- auth helpers ---


def _caller(request: Request, x_user_id: str | None) -> CurrentUser | None:
    return _get_users(request.app).resolve(x_user_id)


def _require_writer(request: Request, x_user_id: str | None) -> CurrentUser:
    user = _caller(request, x_user_id)
    if user is None or not user.is_privileged:
        raise HTTPException(status_code=403, detail="Only an administrator can change the tree")
    return user


def _branch_or_default(request: Request, branch: str | None, x_user_id: str | None) -> str | None:
    """Explicit branch parameter, else the caller's saved default branch."""
    if branch:
        return branch
    user = _caller(request, x_user_id)
    if user is None:
        return None
    return _get_store(request.app).get_default_branch(user.id)


# --- routes ---

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/people")
def list_people(request: Request, branch: str | None = None):
    store = _get_store(request.app)
    people = store.state.people
    if branch:
        ids = get_branch_person_ids(FamilyGraph(store), branch)
        people = tuple(p for p in people if p.id in ids)
    return [_person_dict(p) for p in people]


@router.get("/people/{person_id}")
def get_person(person_id: str, request: Request):
    graph = FamilyGraph(_get_store(request.app))
    person = graph.get_person(person_id)
    if person is None:
        raise HTTPException(status_code=404, detail="Person not found")
    return {
        **_person_dict(person),
        "parents": [
            {"edge_id": link.edge_id, "person": _person_dict(link.person), "subtype": link.subtype.value}
            for link in graph.get_parent_relationships(person_id)
        ],
        "children": [
            {"edge_id": link.edge_id, "person": _person_dict(link.person), "subtype": link.subtype.value}
            for link in graph.get_child_relationships(person_id)
        ],
        "spouses": [
            {"edge_id": link.edge_id, "person": _person_dict(link.person), "index": link.index}
            for link in graph.get_spouse_relationships(person_id)
        ],
    }


@router.post("/people")
def create_person(
    body: PersonBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    user = _require_writer(request, x_user_id)
    store = _get_store(request.app)
    fields = body.model_dump()
    name = fields.pop("name")
    try:
        with _get_users(request.app).acting_as(user):
            person = store.add_person(name, **fields)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return JSONResponse(content=_person_dict(person), status_code=201)


@router.patch("/people/{person_id}")
def update_person(
    person_id: str,
    body: PersonPatch,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    user = _require_writer(request, x_user_id)
    store = _get_store(request.app)
    if FamilyGraph(store).get_person(person_id) is None:
        raise HTTPException(status_code=404, detail="Person not found")
    changes = body.model_dump(exclude_unset=True)
    try:
        with _get_users(request.app).acting_as(user):
            store.update_person(person_id, **changes)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return _person_dict(FamilyGraph(store).get_person(person_id))


@router.delete("/people/{person_id}", status_code=204)
def delete_person(
    person_id: str,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    user = _require_writer(request, x_user_id)
    with _get_users(request.app).acting_as(user):
        _get_store(request.app).delete_person(person_id)
    return Response(status_code=204)


@router.post("/relationships/parent-child", status_code=204)
def add_parent_child(
    body: ParentChildBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    user = _require_writer(request, x_user_id)
    with _get_users(request.app).acting_as(user):
        _get_store(request.app).add_parent_child(body.parent_id, body.child_id, body.subtype)
    return Response(status_code=204)


@router.post("/relationships/spouse", status_code=204)
def add_spouse(
    body: SpouseBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    user = _require_writer(request, x_user_id)
    with _get_users(request.app).acting_as(user):
        _get_store(request.app).add_spouse(body.person_id, body.spouse_id)
    return Response(status_code=204)


@router.delete("/relationships/{relationship_id}", status_code=204)
def remove_relationship(
    relationship_id: str,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    user = _require_writer(request, x_user_id)
    with _get_users(request.app).acting_as(user):
        _get_store(request.app).remove_relationship(relationship_id)
    return Response(status_code=204)


@router.get("/tree")
def get_tree(
    request: Request,
    root: str | None = None,
    male_roots_only: bool = False,
    q: str = "",
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    builder = TreeBuilder(FamilyGraph(_get_store(request.app)))
    if not male_roots_only:
        root = _branch_or_default(request, root, x_user_id)
    if root:
        nodes = builder.build_tree_rooted_at(root)
    elif male_roots_only:
        nodes = builder.build_tree_male_roots_only()
    else:
        nodes = builder.build_tree()
    nodes = filter_tree_by_query(nodes, q)
    main_ids = get_main_person_ids(nodes)
    return [_node_dict(node, main_ids) for node in nodes]


@router.get("/people/{person_id}/ancestors")
def get_ancestors(person_id: str, request: Request, levels: int = DEFAULT_ANCESTOR_LEVELS):
    graph = FamilyGraph(_get_store(request.app))
    if graph.get_person(person_id) is None:
        raise HTTPException(status_code=404, detail="Person not found")
    ancestor_levels = TreeBuilder(graph).get_ancestor_levels(person_id, levels)
    return [[_person_dict(p) for p in level] for level in ancestor_levels]


@router.get("/branches/{root_id}")
def get_branch(root_id: str, request: Request):
    graph = FamilyGraph(_get_store(request.app))
    if graph.get_person(root_id) is None:
        raise HTTPException(status_code=404, detail="Person not found")
    builder = TreeBuilder(graph)
    ids = get_branch_person_ids(graph, root_id)
    cache: dict[str, int] = {}
    return {
        "root_id": root_id,
        "person_ids": sorted(ids),
        "levels": {
            pid: builder.get_person_level_in_branch(pid, root_id, ids, cache) for pid in sorted(ids)
        },
    }


@router.get("/summary")
def get_summary(
    request: Request,
    branch: str | None = None,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    store = _get_store(request.app)
    people = store.state.people
    branch = _branch_or_default(request, branch, x_user_id)
    if branch:
        ids = get_branch_person_ids(FamilyGraph(store), branch)
        people = tuple(p for p in people if p.id in ids)
    stats = branch_stats(people)
    return {
        "total": stats.total,
        "living": stats.living,
        "deceased": stats.deceased,
        "male": stats.male,
        "female": stats.female,
        "male_deceased_60_plus": stats.male_deceased_60_plus,
        "age_bands": stats.age_bands,
    }


@router.get("/reminders")
def get_reminders(
    request: Request,
    branch: str | None = None,
    limit: int = DEFAULT_REMINDER_LIMIT,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    store = _get_store(request.app)
    people = store.state.people
    branch = _branch_or_default(request, branch, x_user_id)
    if branch:
        ids = get_branch_person_ids(FamilyGraph(store), branch)
        people = tuple(p for p in people if p.id in ids)
    today = date.today()

    def event_dict(e):
        return {
            "person": _person_dict(e.person),
            "next_date": e.next_date.isoformat(),
            "days_until": e.days_until,
            "age": e.age,
        }

    return {
        "birthdays": [event_dict(e) for e in upcoming_birthdays(people, limit, today)],
        "death_anniversaries": [
            event_dict(e) for e in upcoming_death_anniversaries(people, limit, today)
        ],
    }


@router.get("/me/default-branch")
def get_default_branch(
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    user = _caller(request, x_user_id)
    if user is None:
        raise HTTPException(status_code=403, detail="Sign in to keep a default branch")
    return {"person_id": _get_store(request.app).get_default_branch(user.id)}


@router.put("/me/default-branch")
def set_default_branch(
    body: DefaultBranchBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    user = _caller(request, x_user_id)
    if user is None:
        raise HTTPException(status_code=403, detail="Sign in to keep a default branch")
    store = _get_store(request.app)
    if body.person_id is not None and FamilyGraph(store).get_person(body.person_id) is None:
        raise HTTPException(status_code=404, detail="Person not found")
    with _get_users(request.app).acting_as(user):
        store.set_default_branch(body.person_id)
    return {"person_id": store.get_default_branch(user.id)}


@router.get("/db")
def download_db(request: Request):
    return Response(
        content=_get_store(request.app).export_snapshot(),
        media_type="application/json",
    )


@router.post("/db", status_code=204)
async def upload_db(
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    user = _require_writer(request, x_user_id)
    raw = await request.body()
    try:
        with _get_users(request.app).acting_as(user):
            _get_store(request.app).restore_snapshot(raw)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return Response(status_code=204)


@router.get("/backup.csv")
def download_csv(request: Request):
    csv_text = export_people_csv(_get_store(request.app).state.people)
    return PlainTextResponse(
        content=csv_text,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="famitree-backup-{date.today().isoformat()}.csv"'},
    )


@router.post("/backup.csv")
async def upload_csv(
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    user = _require_writer(request, x_user_id)
    try:
        text = (await request.body()).decode("utf-8")
    except UnicodeDecodeError as e:
        raise HTTPException(status_code=400, detail="CSV backup must be UTF-8 text") from e
    with _get_users(request.app).acting_as(user):
        count = import_people_csv(_get_store(request.app), text)
    return {"imported": count}


app = create_app()
