"""Tests for role closure and permission resolution through the hierarchy."""

import asyncio

import pytest

from neo_acl.application.services import HierarchyResolver


class TestHierarchyResolver:
    """Parent closure, resource collection and permission unions."""

    @pytest.fixture
    def resolver(self, acl):
        return acl.resolver

    @pytest.mark.asyncio
    async def test_closure_of_parents(self, acl, resolver):
        await acl.add_role_parents("member", "guest")
        await acl.add_role_parents("admin", ["member", "moderator"])
        await acl.add_role_parents("guest", "anonymous")

        assert await resolver.closure_of_parents({"admin"}) == {
            "admin", "member", "moderator", "guest", "anonymous"
        }
        assert await resolver.closure_of_parents({"guest"}) == {"guest", "anonymous"}
        assert await resolver.closure_of_parents(set()) == set()

    @pytest.mark.asyncio
    async def test_closure_terminates_on_cycle(self, acl, resolver):
        await acl.add_role_parents("a", "b")
        await acl.add_role_parents("b", "c")
        await acl.add_role_parents("c", "a")

        closure = await asyncio.wait_for(resolver.closure_of_parents({"a"}), timeout=5)

        assert closure == {"a", "b", "c"}

    @pytest.mark.asyncio
    async def test_self_parent(self, acl, resolver):
        await acl.add_role_parents("loop", "loop")
        await acl.allow("loop", "blogs", "view")

        assert await resolver.closure_of_parents({"loop"}) == {"loop"}
        assert await resolver.permissions_on_resource({"loop"}, "blogs") == {"view"}

    @pytest.mark.asyncio
    async def test_user_role_closure(self, acl, resolver):
        await acl.add_user_roles("joed", "member")
        await acl.add_role_parents("member", "guest")

        assert await resolver.user_role_closure("joed") == {"member", "guest"}
        assert await resolver.user_role_closure("nobody") == set()

    @pytest.mark.asyncio
    async def test_resources_of_roles_includes_ancestors(self, acl, resolver):
        await acl.add_role_parents("member", "guest")
        await acl.allow("guest", "blogs", "view")
        await acl.allow("member", "forums", "post")

        assert await resolver.resources_of_roles({"member"}) == {"blogs", "forums"}
        assert await resolver.resources_of_roles({"guest"}) == {"blogs"}

    @pytest.mark.asyncio
    async def test_permissions_on_resource_unions_ancestors(self, acl, resolver):
        await acl.add_role_parents("member", "guest")
        await acl.allow("guest", "blogs", "view")
        await acl.allow("member", "blogs", "comment")

        assert await resolver.permissions_on_resource({"member"}, "blogs") == {"view", "comment"}
        assert await resolver.permissions_on_resource({"guest"}, "blogs") == {"view"}
        assert await resolver.permissions_on_resource(set(), "blogs") == set()

    @pytest.mark.asyncio
    async def test_permissions_on_resource_with_cycle(self, acl, resolver):
        await acl.add_role_parents("a", "b")
        await acl.add_role_parents("b", "a")
        await acl.allow("b", "blogs", "view")

        result = await asyncio.wait_for(resolver.permissions_on_resource({"a"}, "blogs"), timeout=5)

        assert result == {"view"}

    @pytest.mark.asyncio
    async def test_permissions_on_resources(self, acl, resolver):
        await acl.allow("guest", ["blogs", "forums"], "view")

        result = await resolver.permissions_on_resources({"guest"}, {"blogs", "forums", "news"})

        assert result == {"blogs": {"view"}, "forums": {"view"}, "news": set()}

    @pytest.mark.asyncio
    async def test_works_on_backend_without_unions(self, simple_backend, buckets):
        resolver = HierarchyResolver(simple_backend, buckets)
        batch = simple_backend.begin_batch()
        simple_backend.add(batch, "parents", "member", "guest")
        simple_backend.add(batch, "allows_blogs", "guest", "view")
        await simple_backend.commit_batch(batch)

        assert await resolver.permissions_on_resource({"member"}, "blogs") == {"view"}
