from .state_repository import SqlAlchemyStateRepository

__all__ = ["SqlAlchemyStateRepository"]
