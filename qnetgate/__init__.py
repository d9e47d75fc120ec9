"""D-STAR gateway components: packets, slow data, routing, echo, APRS and Icom ITAP framing."""

__version__ = "0.1.0"