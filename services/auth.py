from typing import Iterable, Optional, Union

from config.enums import Capability


class AuthService:
    def __init__(self, capabilities: Optional[Iterable[Union[str, Capability]]] = None):
        if capabilities is None:
            capabilities = list(Capability)
        self.capabilities = {c.value if isinstance(c, Capability) else str(c) for c in capabilities}

    def user_can(self, capability: Union[str, Capability]) -> bool:
        name = capability.value if isinstance(capability, Capability) else str(capability)
        return name in self.capabilities

    def grant(self, capability: Union[str, Capability]) -> None:
        self.capabilities.add(capability.value if isinstance(capability, Capability) else str(capability))

    def revoke(self, capability: Union[str, Capability]) -> None:
        self.capabilities.discard(capability.value if isinstance(capability, Capability) else str(capability))
