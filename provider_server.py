import asyncio
import uuid
from typing import Any, List, Optional

from aiohttp import web
from loguru import logger


class ProviderServer:
    """Local stand-in for the task provider.

    Every created task walks through ``statuses`` one status query at a time;
    the last entry repeats once the sequence is exhausted.
    """

    def __init__(
        self,
        statuses: Optional[List[str]] = None,
        output: Any = None,
        submit_status: int = 200,
        submit_code: int = 200,
        status_delay: float = 0.0,
        api_key: str = "test-key",
    ):
        self.statuses = statuses or ["pending", "processing", "completed"]
        self.output = output if output is not None else {"image_url": "https://x/y.png"}
        self.submit_status = submit_status
        self.submit_code = submit_code
        self.status_delay = status_delay
        self.api_key = api_key
        self.usage: Any = {"consume": 120000, "frozen": 0, "type": "point"}
        self.error: Any = {"code": 10000, "message": "content moderation"}
        self.raw_data: Any = None  # replaces the whole data field when set
        self.submissions: List[dict] = []
        self.status_queries = 0
        self.tasks = {}
        self.runner = None
        self.app = web.Application()
        self.app.router.add_post("/task", self.handle_create)
        self.app.router.add_get("/task/{task_id}", self.handle_status)
        self.app.router.add_get("/files/{name}", self.handle_file)
        self.logger = logger

    def _authorized(self, request: web.Request) -> bool:
        return request.headers.get("X-API-Key") == self.api_key

    async def handle_create(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.json_response({"code": 401, "message": "invalid api key"}, status=401)

        body = await request.json()
        self.submissions.append(body)

        if self.submit_status != 200:
            self.logger.info(f"Returning HTTP {self.submit_status} for task creation")
            return web.Response(status=self.submit_status, text="internal provider error")
        if self.submit_code != 200:
            return web.json_response({"code": self.submit_code, "message": "invalid task_type"})

        task_id = str(uuid.uuid4())
        self.tasks[task_id] = 0
        self.logger.info(f"Created task {task_id} for {body.get('model')}")
        return web.json_response(
            {"code": 200, "message": "success", "data": {"task_id": task_id}}
        )

    async def handle_status(self, request: web.Request) -> web.Response:
        task_id = request.match_info["task_id"]
        if task_id not in self.tasks:
            return web.Response(status=404, text="task not found")

        self.status_queries += 1
        if self.status_delay:
            await asyncio.sleep(self.status_delay)

        index = min(self.tasks[task_id], len(self.statuses) - 1)
        self.tasks[task_id] += 1
        status = self.statuses[index]
        self.logger.info(f"Returning {status} status for {task_id}")

        data = {
            "task_id": task_id,
            "status": status,
            "output": None,
            "error": {},
            "meta": {"usage": self.usage},
        }
        if status.lower() == "completed":
            data["output"] = self.output
        elif status.lower() == "failed":
            data["error"] = self.error
        if self.raw_data is not None:
            data = self.raw_data
        return web.json_response({"code": 200, "message": "success", "data": data})

    async def handle_file(self, request: web.Request) -> web.Response:
        return web.Response(body=f"content of {request.match_info['name']}".encode())

    async def start(self, port: int = 8080):
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        site = web.TCPSite(self.runner, "localhost", port)
        await site.start()
        self.logger.info(f"Provider stand-in started on port {port}")
        return site

    async def stop(self) -> None:
        if self.runner is not None:
            await self.runner.cleanup()
            self.runner = None
