import json

import pytest

from stagecoder.core.ai.base import ProviderNotConfiguredError
from stagecoder.core.models import LoopState
from stagecoder.core.session import MANUAL_PUSH_MESSAGE, CodingSession
from stagecoder.services.project_service import ProjectNotFoundError, ProjectService

from conftest import PUSH_REJECTED_STDERR, FakeAgent, ScriptedGit, run_async

DEPLOY_URL = "https://staging--site.example.app"


def write_reply(path, content):
    return json.dumps({"action": "write_file", "file": path, "content": content})


def make_session(workspace, agent=None, git=None, **kwargs):
    git = git or ScriptedGit()
    return CodingSession(
        agent=agent,
        projects=ProjectService(workspace, git=git),
        deployment_url=DEPLOY_URL,
        **kwargs,
    )


def test_run_in_named_project_publishes_and_links_deployment(project_dir):
    git = ScriptedGit()
    agent = FakeAgent([write_reply("index.html", "<h1>Bye</h1>\n"), '{"action": "complete", "summary": "ok"}'])
    session = make_session(project_dir.parent, agent, git)

    result = run_async(session.run("Say goodbye", project="project"))

    assert result.success is True
    assert result.state == LoopState.COMPLETED
    assert (project_dir / "index.html").read_text(encoding="utf-8") == "<h1>Bye</h1>\n"
    assert result.publish.success is True
    assert result.deployment_url == DEPLOY_URL
    assert all(cwd == project_dir.resolve() for _, cwd in git.calls)

    data = result.to_dict()
    assert data["changes"] == [{"file": "index.html", "action": "modified"}]
    assert data["git"]["commit_message"] == "AI: Say goodbye"
    assert data["deployment_url"] == DEPLOY_URL


def test_tree_shown_to_agent_is_the_project_tree(project_dir):
    agent = FakeAgent(['{"action": "complete"}'])
    run_async(make_session(project_dir.parent, agent).run("x", project="project"))

    framing = agent.calls[0][0].text
    assert "📁 src/" in framing
    assert "  📄 app.js" in framing


def test_no_deployment_url_when_publish_fails(project_dir):
    git = ScriptedGit(failures={"push": PUSH_REJECTED_STDERR})
    agent = FakeAgent([write_reply("index.html", "x"), '{"action": "complete"}'])
    result = run_async(make_session(project_dir.parent, agent, git).run("x", project="project"))

    assert result.publish.can_force_push is True
    assert result.deployment_url is None
    assert result.to_dict()["git"]["can_force_push"] is True


def test_no_deployment_url_without_changes(project_dir):
    agent = FakeAgent(['{"action": "complete", "summary": "nothing needed"}'])
    result = run_async(make_session(project_dir, agent).run("x"))

    assert result.publish is None
    assert result.deployment_url is None
    assert result.to_dict()["git"] is None


def test_limits_come_from_config(project_dir):
    config = {"deployment_url": DEPLOY_URL, "loop": {"max_iterations": 2, "max_read_chars": 50}}
    session = CodingSession.from_config(config, FakeAgent(), ProjectService(project_dir, git=ScriptedGit()))

    assert session.deployment_url == DEPLOY_URL
    assert session.max_read_chars == 50
    result = run_async(session.run("x"))
    assert result.state == LoopState.EXHAUSTED
    assert result.iterations == 2


def test_empty_prompt_is_rejected(project_dir):
    with pytest.raises(ValueError, match="Prompt is required"):
        run_async(make_session(project_dir, FakeAgent()).run("   "))


def test_missing_agent_is_rejected(project_dir):
    with pytest.raises(ProviderNotConfiguredError):
        run_async(make_session(project_dir, None).run("do something"))


def test_unknown_project_is_rejected_before_the_agent_runs(project_dir):
    agent = FakeAgent()
    with pytest.raises(ProjectNotFoundError):
        run_async(make_session(project_dir, agent).run("x", project="ghost"))
    assert agent.calls == []


def test_push_staging_uses_manual_message(project_dir):
    git = ScriptedGit()
    result = make_session(project_dir.parent, git=git).push_staging(project="project")

    assert result.success is True
    assert result.commit_message == f"AI: {MANUAL_PUSH_MESSAGE}"
    assert f"commit -m AI: {MANUAL_PUSH_MESSAGE}" in git.commands


def test_push_staging_with_clean_tree(project_dir):
    git = ScriptedGit(status="")
    result = make_session(project_dir, git=git).push_staging("Tweak copy")
    assert result.success is False
    assert result.message == "No changes detected"


def test_retry_force_push(project_dir):
    git = ScriptedGit()
    result = make_session(project_dir.parent, git=git).retry_force_push(project="project")

    assert result.success is True
    assert git.commands == ["checkout staging", "push --force origin staging"]
    assert git.calls[0][1] == project_dir.resolve()
