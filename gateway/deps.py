from fastapi import Request

from .config import Settings
from .services.agents import GenericAgent, SheetsAgent
from .storage.repo import Repo


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_repo(request: Request) -> Repo:
    return request.app.state.repo


def get_generic_agent(request: Request) -> GenericAgent:
    return request.app.state.generic_agent


def get_sheets_agent(request: Request) -> SheetsAgent:
    return request.app.state.sheets_agent
