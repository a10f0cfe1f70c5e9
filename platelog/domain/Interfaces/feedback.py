from typing import Protocol


class IFeedback(Protocol):
    """
    Feedback sonoro / háptico. Ambas operaciones son best-effort:
    devuelven True si se ejecutaron y nunca lanzan.
    """
    def beep(self) -> bool: ...

    def vibrate(self, duration_ms: int = 200) -> bool: ...
