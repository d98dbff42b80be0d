"""
Ошибки движка консолидации

Два вида ошибок, оба локальные, синхронные и не подлежащие retry:
- InvalidArgument: отрицательные/некорректные физические входы, некорректные ставки
- InvalidState: операция над коробкой в несовместимом состоянии lifecycle

Трансляция в user-facing сообщение или HTTP статус — ответственность вызывающего кода.
"""


class ConsolidationError(Exception):
    """Базовая ошибка движка консолидации и расчёта стоимости доставки."""

    pass


class InvalidArgument(ConsolidationError, ValueError):
    """
    Некорректный входной аргумент (contract violation вызывающего кода).

    Наследует ValueError, чтобы существующие обработчики валидации
    (`except ValueError`) продолжали работать.
    """

    pass


class InvalidState(ConsolidationError):
    """
    Операция недопустима в текущем статусе коробки.

    Например: добавление товара в закрытую коробку, повторное закрытие,
    отправка незакрытой коробки.
    """

    pass
