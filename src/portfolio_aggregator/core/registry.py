"""Position reader registry with auto-registration pattern."""

from typing import Any, Protocol

from portfolio_aggregator.core.models import Position, ProtocolName, ReaderResult


class PositionReaderInterface(Protocol):
    """
    Interface that all position readers must implement.

    Attributes
    ----------
    protocol : ProtocolName
        Protocol covered by the reader

    Methods
    -------
    read(user_address)
        Fetch positions tagged with their source
    get_positions(user_address)
        Fetch positions only

    """

    protocol: ProtocolName

    async def read(self, user_address: str) -> ReaderResult:
        """Fetch positions tagged with their source."""
        ...

    async def get_positions(self, user_address: str) -> list[Position]:
        """Fetch positions only."""
        ...


class ReaderRegistry:
    """
    Registry for position readers with auto-registration.

    Readers register themselves using the @ReaderRegistry.register decorator.
    The aggregator builds one reader per registered protocol.

    """

    _readers: dict[ProtocolName, type] = {}

    @classmethod
    def register(cls, reader_class: type) -> type:
        """
        Decorator to register a position reader.

        Parameters
        ----------
        reader_class : type
            Reader class to register

        Returns
        -------
        type
            The reader class (for decorator chaining)

        Examples
        --------
        >>> @ReaderRegistry.register
        ... class AaveReader(BasePositionReader):
        ...     protocol = ProtocolName.AAVE

        """
        protocol = getattr(reader_class, "protocol", None)
        if not isinstance(protocol, ProtocolName):
            msg = f"Reader {reader_class.__name__} must define a 'protocol' attribute"
            raise ValueError(msg)

        cls._readers[protocol] = reader_class
        return reader_class

    @classmethod
    def get_reader(cls, protocol: ProtocolName | str) -> type | None:
        """
        Get reader class by protocol.

        Parameters
        ----------
        protocol : ProtocolName | str
            Protocol identifier

        Returns
        -------
        type | None
            Reader class or None if not found

        """
        try:
            return cls._readers.get(ProtocolName(protocol))
        except ValueError:
            return None

    @classmethod
    def get_all_readers(cls) -> list[type]:
        """
        Get all registered reader classes in protocol order.

        Returns
        -------
        list[type]
            Reader classes, ordered as ``ProtocolName`` members

        """
        return [cls._readers[protocol] for protocol in ProtocolName if protocol in cls._readers]

    @classmethod
    def create_readers(cls, provider: Any | None = None) -> list[PositionReaderInterface]:
        """
        Instantiate every registered reader.

        Parameters
        ----------
        provider : Any | None
            Chain-state provider shared by the readers

        Returns
        -------
        list[PositionReaderInterface]
            Reader instances in protocol order

        """
        return [reader_class(provider=provider) for reader_class in cls.get_all_readers()]

    @classmethod
    def list_protocols(cls) -> list[str]:
        """
        Get list of all registered protocol names.

        Returns
        -------
        list[str]
            Protocol identifiers in protocol order

        """
        return [reader_class.protocol.value for reader_class in cls.get_all_readers()]
