from typing import Callable, Protocol, runtime_checkable

type ServiceFactory[T] = Callable[["IContainer"], T]


@runtime_checkable
class IContainer(Protocol):
    def register[T](
        self, service_type: type[T], factory: ServiceFactory[T]
    ) -> "IContainer": ...

    def singleton[T](
        self, service_type: type[T], factory: ServiceFactory[T]
    ) -> "IContainer": ...

    def resolve[T](self, service_type: type[T]) -> T: ...
