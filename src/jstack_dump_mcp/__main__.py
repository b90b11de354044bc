import asyncio
import logging
import os

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, TextContent, Tool

from jstack_dump_mcp.dump import ThreadState
from jstack_dump_mcp.tools_adapter import Result, count_states_tool_call, summarize_tool_call

logger = logging.getLogger("jstack-dump-mcp")


def to_call_result(result: Result) -> CallToolResult:
    if result.ok:
        return CallToolResult(content=[TextContent(type="text", text=result.text or "")])
    return CallToolResult(
        content=[TextContent(type="text", text=f"{result.error_code}: {result.error_message}")],
        isError=True,
    )


def build_server() -> Server:
    server = Server("jstack-dump-mcp")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return [
            Tool(
                name="summarize_thread_dump",
                description=(
                    "Parses a JVM thread dump and returns its summary: generation date, "
                    "description, thread count, threads without stack and JNI references."
                ),
                inputSchema={
                    "type": "object",
                    "required": ["path"],
                    "properties": {
                        "path": {"type": "string", "description": "Path to thread dump text file"},
                        "max_threads": {"type": "integer", "minimum": 1, "default": 5000},
                    },
                    "additionalProperties": False,
                },
            ),
            Tool(
                name="count_threads_by_state",
                description=(
                    "Parses a JVM thread dump and counts its threads by state, "
                    "or the threads in a single state."
                ),
                inputSchema={
                    "type": "object",
                    "required": ["path"],
                    "properties": {
                        "path": {"type": "string", "description": "Path to thread dump text file"},
                        "max_threads": {"type": "integer", "minimum": 1, "default": 5000},
                        "state": {"type": "string", "enum": [s.value for s in ThreadState]},
                    },
                    "additionalProperties": False,
                },
            ),
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict) -> CallToolResult:
        max_threads = arguments.get("max_threads", 5000)
        if name == "summarize_thread_dump":
            return to_call_result(summarize_tool_call(arguments.get("path"), max_threads=max_threads))
        elif name == "count_threads_by_state":
            return to_call_result(
                count_states_tool_call(
                    arguments.get("path"),
                    max_threads=max_threads,
                    state=arguments.get("state"),
                )
            )
        else:
            logger.warning("Unknown tool requested: %s", name)
            return CallToolResult(content=[TextContent(type="text", text=f"Unknown tool: {name}")], isError=True)

    return server


async def main_async() -> None:
    server = build_server()
    logger.info("Starting jstack-dump-mcp on stdio")
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def configure_logging() -> None:
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))


def main() -> None:
    configure_logging()
    asyncio.run(main_async())


if __name__ == "__main__":
    main()
