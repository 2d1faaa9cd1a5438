from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from backend.core.errors import StorageUnavailable
from backend.models.counter import Counter


class SqlSequence:
    """Per-name counters stored in the ``counters`` table.

    Each increment is a single ``UPDATE ... RETURNING`` statement, so two
    callers can never read the same value.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def ensure(self, name: str) -> None:
        try:
            with self._session_factory.begin() as session:
                if session.get(Counter, name) is None:
                    session.add(Counter(name=name, sequence=0))
        except IntegrityError:
            # Created concurrently by another worker.
            return
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"Could not initialize counter {name!r}") from exc

    def next(self, name: str) -> int:
        statement = (
            update(Counter)
            .where(Counter.name == name)
            .values(sequence=Counter.sequence + 1)
            .returning(Counter.sequence)
        )
        try:
            # Second pass covers a concurrent first insert of the same counter.
            for _ in range(2):
                with self._session_factory.begin() as session:
                    value = session.execute(
                        statement, execution_options={"synchronize_session": False}
                    ).scalar_one_or_none()
                if value is not None:
                    return value
                try:
                    with self._session_factory.begin() as session:
                        session.add(Counter(name=name, sequence=1))
                    return 1
                except IntegrityError:
                    continue
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"Could not advance counter {name!r}") from exc
        raise StorageUnavailable(f"Could not advance counter {name!r}")
