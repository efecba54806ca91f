"""문서 저장소 인터페이스 정의

Protocol 기반 인터페이스로 구조적 서브타이핑 지원.
모든 조회는 tenant_id로 스코프된다.
"""

from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol


class IDocumentStore(Protocol):
    """멀티테넌트 문서 저장소

    MemoryDocumentStore와 SqlDocumentStore가 구현하는 공통 인터페이스.
    문서는 JSON 호환 dict이며 "id"와 "tenant_id" 키를 가진다.
    """

    async def insert(self, collection: str, doc: dict) -> str:
        """문서 삽입 후 저장소가 부여한 ID 반환"""
        ...

    async def patch(self, collection: str, doc_id: str, partial: dict) -> None:
        """부분 업데이트 (최상위 키 단위 병합)

        Raises:
            KeyError: 문서 미존재
        """
        ...

    async def delete(self, collection: str, doc_id: str) -> None:
        """문서 삭제"""
        ...

    async def get(self, collection: str, doc_id: str) -> dict | None:
        """ID로 조회 (테넌트 검증은 호출자 책임)"""
        ...

    async def query(
        self,
        collection: str,
        tenant_id: str,
        where: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict]:
        """테넌트 범위 조회

        Args:
            collection: 컬렉션 이름
            tenant_id: 테넌트 ID (필수 스코프)
            where: 동등 조건. 키는 "related_ids.order_id"처럼 점 표기 가능
            order_by: 정렬 필드
            descending: 내림차순 여부
            limit: 최대 개수
        """
        ...

    async def list_tenants(self, collection: str) -> list[str]:
        """컬렉션에 문서를 가진 테넌트 목록 (시스템 스윕 전용)"""
        ...

    async def commit(self) -> None:
        """현재까지의 쓰기 확정 (트리거 지점이 예약 전에 호출)"""
        ...

    def transaction(self, lock_key: str | None = None) -> AbstractAsyncContextManager[None]:
        """하나의 논리 단위 실행

        블록 안의 쓰기는 예외 시 모두 롤백된다.
        lock_key가 주어지면 같은 키의 트랜잭션끼리 직렬화된다.
        """
        ...


def resolve_path(doc: dict, path: str) -> Any:
    """점 표기 경로 값 조회 ("related_ids.order_id")"""
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value
