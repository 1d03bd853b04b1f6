from starlette.requests import HTTPConnection

from promptlab.services.chat_service import AgentChatService


# HTTPConnection covers both Request and WebSocket, so one dependency serves both routes
def get_chat_service(conn: HTTPConnection) -> AgentChatService:
    return conn.app.state.chat_service


def get_analysis_factory(conn: HTTPConnection):
    return conn.app.state.analysis_factory
