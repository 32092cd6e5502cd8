# -*- coding: utf-8 -*-
"""
Typed endpoints of the instrument.

- `Line`: digital and slow analog pins
- `Channel`: fast ADC/DAC sample channels
- `Redpitaya`: the fixed catalog of both over one connection
- `mock`: duplex test doubles

Examples
--------
```python
from pitaya.device import Redpitaya
from pitaya.device.mock import LoopbackDuplex
redpitaya = Redpitaya(LoopbackDuplex())
await redpitaya.pin.digital.led0.write(True)
```

See Also
--------
pitaya.comms : Router the endpoints are built on
"""

from .channel import Channel
from .line import Line
from .mock import LoopbackDuplex, MockDuplex
from .redpitaya import Redpitaya

__all__ = ["Channel", "Line", "LoopbackDuplex", "MockDuplex", "Redpitaya"]
