"""
Unit tests for Pagination utilities.

Covers parameter validation and paginating a real query against the test
database.
"""

import pytest
from sqlalchemy import select

from app.shared.pagination import PaginationParams, paginate
from models import Message
from tests.factories import MessageFactory


class TestPaginationParams:
    """Test cases for PaginationParams."""

    def test_default_values(self):
        params = PaginationParams()

        assert params.page == 1
        assert params.size == 20

    @pytest.mark.parametrize("kwargs", [{"page": 0}, {"size": 0}, {"size": 101}])
    def test_out_of_range_values(self, kwargs):
        with pytest.raises(ValueError):
            PaginationParams(**kwargs)


@pytest.mark.asyncio
class TestPaginate:
    """Test cases for paginate."""

    async def test_middle_page(self, test_db, test_user):
        test_db.add_all(
            [MessageFactory.build(user_id=test_user.id, ephemeral_conversation_id="eph-p", text=f"m{i}") for i in range(7)]
        )
        await test_db.commit()

        result = await paginate(
            test_db,
            select(Message).where(Message.ephemeral_conversation_id == "eph-p").order_by(Message.text),
            PaginationParams(page=2, size=3),
        )

        assert result["total"] == 7
        assert result["total_pages"] == 3
        assert [m.text for m in result["items"]] == ["m3", "m4", "m5"]
        assert result["has_next"] is True
        assert result["has_prev"] is True

    async def test_empty_query(self, test_db):
        result = await paginate(test_db, select(Message), PaginationParams())

        assert result["items"] == []
        assert result["total"] == 0
        assert result["total_pages"] == 0
        assert result["has_next"] is False
        assert result["has_prev"] is False
