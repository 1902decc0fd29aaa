"""例外定義"""


class TaskLedgerError(Exception):
    """タスク相関処理の基底例外"""


class EventStoreError(TaskLedgerError):
    """Event Storeの読み書き失敗"""
