# paytrack/store/record_store.py
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, NamedTuple, Optional
from uuid import uuid4

from sqlalchemy import Date, DateTime, Enum, Numeric, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from paytrack.exceptions import NotFoundError, PersistenceError, ValidationError
from paytrack.logger import get_logger
from paytrack.models.attachment import Attachment
from paytrack.models.audit_log import AuditLog
from paytrack.models.client import Client
from paytrack.models.payment import Payment
from paytrack.models.project import Project
from paytrack.models.task import Task
from paytrack.models.team_member import TeamMember
from paytrack.store.mappers import to_wire_value

logger = get_logger(__name__)

COLLECTIONS = {
    "projects": Project,
    "payments": Payment,
    "tasks": Task,
    "clients": Client,
    "team_members": TeamMember,
    "attachments": Attachment,
    "audit_logs": AuditLog,
}


class ChangeEvent(NamedTuple):
    collection: str
    action: str  # insert | update | delete
    record: Dict[str, Any]


ChangeCallback = Callable[[ChangeEvent], None]


class RecordStore:
    """
    Row-level persistence collaborator used by every service.

    Each call is its own unit of work (open session, write, commit, close),
    the same way a hosted table API behaves: there is no transaction spanning
    two calls. Rows go in and come out as plain dicts with snake_case keys,
    dates as ISO strings, money as decimal strings and enums as their values.

    Subscribers registered with ``subscribe`` are told about every committed
    insert / update / delete on a collection.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory
        self._subscribers: Dict[str, List[ChangeCallback]] = defaultdict(list)

    # ======================================================
    # ✍️ Writes
    # ======================================================

    def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        model = self._model(collection)
        values = self._coerce_values(model, record)
        values.setdefault("id", str(uuid4()))

        session = self.session_factory()
        try:
            obj = model(**values)
            session.add(obj)
            session.flush()
            session.refresh(obj)  # 取回 server_default（created_at）
            row = self._to_row(obj)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error inserting into {collection}: {e}")
            raise PersistenceError(f"Could not insert into {collection}", collection) from e
        finally:
            session.close()

        self._publish(ChangeEvent(collection, "insert", row))
        return row

    def update(self, collection: str, record_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        model = self._model(collection)
        values = self._coerce_values(model, patch)
        values.pop("id", None)

        session = self.session_factory()
        try:
            obj = session.get(model, record_id)
            if obj is None:
                raise NotFoundError(collection, record_id)
            for key, value in values.items():
                setattr(obj, key, value)
            session.flush()
            row = self._to_row(obj)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error updating {collection} {record_id}: {e}")
            raise PersistenceError(f"Could not update {collection} {record_id}", collection) from e
        finally:
            session.close()

        self._publish(ChangeEvent(collection, "update", row))
        return row

    def delete(self, collection: str, record_id: str) -> None:
        model = self._model(collection)

        session = self.session_factory()
        try:
            obj = session.get(model, record_id)
            if obj is None:
                raise NotFoundError(collection, record_id)
            row = self._to_row(obj)
            session.delete(obj)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error deleting {collection} {record_id}: {e}")
            raise PersistenceError(f"Could not delete {collection} {record_id}", collection) from e
        finally:
            session.close()

        self._publish(ChangeEvent(collection, "delete", row))

    # ======================================================
    # 🔍 Reads
    # ======================================================

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        model = self._model(collection)
        session = self.session_factory()
        try:
            obj = session.get(model, record_id)
            return self._to_row(obj) if obj is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Error fetching {collection} {record_id}: {e}")
            raise PersistenceError(f"Could not fetch {collection} {record_id}", collection) from e
        finally:
            session.close()

    def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        '''
        Equality filter query.

        :param collection: collection name, e.g. "payments"
        :param filters: column -> value; a list / tuple value means "IN"
        :param order_by: column to sort by
        :param descending: sort direction
        :return: matching rows
        '''
        model = self._model(collection)
        stmt = select(model)

        for key, value in (filters or {}).items():
            column = self._column(model, key)
            if isinstance(value, (list, tuple, set)):
                stmt = stmt.where(column.in_([self._coerce(model, key, v) for v in value]))
            else:
                stmt = stmt.where(column == self._coerce(model, key, value))

        if order_by:
            column = self._column(model, order_by)
            stmt = stmt.order_by(column.desc() if descending else column.asc())

        session = self.session_factory()
        try:
            return [self._to_row(obj) for obj in session.scalars(stmt).all()]
        except SQLAlchemyError as e:
            logger.error(f"Error querying {collection}: {e}")
            raise PersistenceError(f"Could not query {collection}", collection) from e
        finally:
            session.close()

    # ======================================================
    # 📣 Change notifications
    # ======================================================

    def subscribe(self, collection: str, callback: ChangeCallback) -> Callable[[], None]:
        self._model(collection)
        self._subscribers[collection].append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers[collection]:
                self._subscribers[collection].remove(callback)

        return unsubscribe

    def _publish(self, event: ChangeEvent) -> None:
        for callback in list(self._subscribers.get(event.collection, [])):
            try:
                callback(event)
            except Exception:
                # 通知只是刷新信号，订阅方出错不影响已提交的写入
                logger.exception(f"Change subscriber failed for {event.collection}")

    # ======================================================
    # 🔁 Row conversion
    # ======================================================

    def _model(self, collection: str):
        model = COLLECTIONS.get(collection)
        if model is None:
            raise ValueError(f"Unknown collection: {collection}")
        return model

    def _column(self, model, key: str):
        column = model.__table__.columns.get(key)
        if column is None:
            raise ValidationError(f"Unknown field '{key}' for {model.__tablename__}", field=key)
        return column

    def _coerce_values(self, model, record: Dict[str, Any]) -> Dict[str, Any]:
        return {key: self._coerce(model, key, value) for key, value in record.items()}

    def _coerce(self, model, key: str, value: Any) -> Any:
        column = self._column(model, key)
        if value is None:
            return None

        column_type = column.type
        try:
            if isinstance(column_type, Enum) and column_type.enum_class is not None:
                if isinstance(value, column_type.enum_class):
                    return value
                return column_type.enum_class(value)
            if isinstance(column_type, DateTime):
                if isinstance(value, datetime):
                    return value
                if isinstance(value, date):
                    return datetime(value.year, value.month, value.day)
                return datetime.fromisoformat(str(value))
            if isinstance(column_type, Date):
                if isinstance(value, datetime):
                    return value.date()
                if isinstance(value, date):
                    return value
                text = str(value)
                if "T" in text:
                    return datetime.fromisoformat(text).date()
                return date.fromisoformat(text)
            if isinstance(column_type, Numeric):
                return value if isinstance(value, Decimal) else Decimal(str(value))
        except (ValueError, InvalidOperation) as e:
            raise ValidationError(f"Invalid value for '{key}': {value!r}", field=key) from e
        return value

    def _to_row(self, obj) -> Dict[str, Any]:
        row = {}
        for column in obj.__table__.columns:
            row[column.key] = to_wire_value(getattr(obj, column.key))
        return row

