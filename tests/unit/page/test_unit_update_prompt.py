# tests/unit/page/test_unit_update_prompt.py — v1
"""Tests for page/update_prompt.py — the update-available banner."""

from __future__ import annotations

import pytest

from staleguard.page.update_prompt import UpdatePrompt
from staleguard.worker.registration import InMemoryWorkerContainer, RegistrationManager
from staleguard.worker.service_worker import ServiceWorker


@pytest.fixture
def waiting_manager(profile, settings, fetcher, site) -> RegistrationManager:
    no_skip = settings.model_copy(update={"skip_waiting_on_install": False})

    def factory(script_url):
        s = no_skip.model_copy(update={"cache_version": site.worker_version})
        return ServiceWorker(script_url, profile, s, fetcher=fetcher)

    return RegistrationManager(InMemoryWorkerContainer(factory))


class TestUpdatePrompt:
    @pytest.mark.asyncio
    async def test_hidden_initially(self, waiting_manager):
        prompt = UpdatePrompt(waiting_manager)
        prompt.attach(await waiting_manager.register_current("/sw.js"))
        assert prompt.visible is False
        assert prompt.message == ""

    @pytest.mark.asyncio
    async def test_need_refresh_on_waiting_worker(self, waiting_manager, site):
        prompt = UpdatePrompt(waiting_manager)
        reg = await waiting_manager.register_current("/sw.js")
        prompt.attach(reg)
        site.worker_version = "v2"
        await reg.update()
        assert prompt.need_refresh is True
        assert prompt.title == "Update Available"
        assert "new version" in prompt.message

    @pytest.mark.asyncio
    async def test_attach_sees_existing_waiting_worker(self, waiting_manager, site):
        reg = await waiting_manager.register_current("/sw.js")
        site.worker_version = "v2"
        await reg.update()
        prompt = UpdatePrompt(waiting_manager)
        prompt.attach(reg)
        prompt.attach(reg)
        assert prompt.need_refresh is True

    @pytest.mark.asyncio
    async def test_update_now_activates_waiting(self, waiting_manager, site):
        prompt = UpdatePrompt(waiting_manager)
        reg = await waiting_manager.register_current("/sw.js")
        prompt.attach(reg)
        site.worker_version = "v2"
        await reg.update()

        assert await prompt.update_now() == 1
        assert reg.active.version == "v2"
        assert prompt.need_refresh is False

    @pytest.mark.asyncio
    async def test_offline_ready_on_activation(self, container, site):
        manager = RegistrationManager(container)
        prompt = UpdatePrompt(manager)
        reg = await manager.register_current("/sw.js")
        prompt.attach(reg)
        site.worker_version = "v2"
        await reg.update()
        assert prompt.offline_ready is True
        assert prompt.need_refresh is False
        assert prompt.title == "App Ready"

    def test_close_calls_dismiss(self, waiting_manager):
        dismissed = []
        prompt = UpdatePrompt(waiting_manager, on_dismiss=lambda: dismissed.append(True))
        prompt.need_refresh = True
        prompt.close()
        assert prompt.visible is False
        assert dismissed == [True]
