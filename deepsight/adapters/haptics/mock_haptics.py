class MockVibration:
    def __init__(self, status_store):
        self.status = status_store
        self.patterns: list[list[int]] = []

    async def has_vibrator(self) -> bool:
        return True

    async def vibrate(self, pattern):
        pattern = list(pattern)
        self.patterns.append(pattern)
        self.status.log(f"mock_haptics: vibrate {pattern} ({sum(pattern)}ms)")

    async def aclose(self):
        pass
