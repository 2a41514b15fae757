import re

from httpx import AsyncClient

from spoonjoy.core import security
from spoonjoy.core.config import settings

TEST_PASSWORD = "password123"


async def sign_up(client: AsyncClient, email: str = "chef@example.com", username: str = "chef") -> str:
    """Signs up through the API, leaves the session cookie on the client and returns the user id."""
    response = await client.post(
        "/signup",
        data={
            "email": email,
            "username": username,
            "password": TEST_PASSWORD,
            "confirmPassword": TEST_PASSWORD,
        },
    )
    assert response.status_code == 303, response.text
    return security.decode_session_token(response.cookies[settings.SESSION_COOKIE_NAME])


def id_from_location(response, pattern: str) -> str:
    """Pulls an id out of a redirect Location header, e.g. pattern r"/recipes/([^/]+)$"."""
    match = re.search(pattern, response.headers["location"])
    assert match, response.headers.get("location")
    return match.group(1)


async def create_recipe(client: AsyncClient, title: str = "Pancakes", **fields) -> str:
    response = await client.post("/recipes/new", data={"title": title, **fields})
    assert response.status_code == 303, response.text
    return id_from_location(response, r"/recipes/([^/]+)$")


async def create_step(client: AsyncClient, recipe_id: str, description: str, uses_steps=(), step_title: str = "") -> str:
    response = await client.post(
        f"/recipes/{recipe_id}/steps/new",
        data={"stepTitle": step_title, "description": description, "usesSteps": [str(n) for n in uses_steps]},
    )
    assert response.status_code == 303, response.text
    return id_from_location(response, r"/steps/([^/]+)/edit$")
