from .mock_duplex import LoopbackDuplex, MockDuplex, MockWritable

__all__ = ["LoopbackDuplex", "MockDuplex", "MockWritable"]
