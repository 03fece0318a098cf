from typing import Any


class AsyncBaseJob(object):
    async def run(self) -> Any:
        try:
            await self._start()
            return await self._execute()
        finally:
            await self._end()

    async def _start(self) -> None:
        pass

    async def _execute(self) -> Any:
        pass

    async def _end(self) -> None:
        pass
