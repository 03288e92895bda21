"""Shared test helpers."""
import asyncio

import pytest


class Rendezvous:
    """Lets fake handlers wait until a given number of requests are in flight together."""
    
    def __init__(self, parties, timeout=2.0):
        self.parties = parties
        self.timeout = timeout
        self.arrived = []
        self.event = None
    
    async def wait(self, name):
        """Return True once all parties have arrived, False if they never do."""
        # Created lazily so it binds to the running loop
        if self.event is None:
            self.event = asyncio.Event()
        self.arrived.append(name)
        if len(self.arrived) >= self.parties:
            self.event.set()
        try:
            await asyncio.wait_for(self.event.wait(), timeout=self.timeout)
            return True
        except asyncio.TimeoutError:
            return False


@pytest.fixture
def rendezvous():
    return Rendezvous
