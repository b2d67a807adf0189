"""Treatment repository - Database operations for services"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Service


class ServiceRepository:
    """Repository for treatment database operations"""

    @staticmethod
    def get_services(
        db: Session,
        tenant_id: str,
        active_only: bool = False,
        category: Optional[str] = None,
    ) -> list[Service]:
        """Treatments for a tenant ordered by name"""
        query = db.query(Service).filter(Service.tenant_id == tenant_id)

        if active_only:
            query = query.filter(Service.active.is_(True))

        if category:
            query = query.filter(Service.category == category)

        return query.order_by(Service.name.asc()).all()

    @staticmethod
    def get_service_by_id(db: Session, service_id: str, tenant_id: str) -> Optional[Service]:
        return (
            db.query(Service)
            .filter(Service.id == service_id, Service.tenant_id == tenant_id)
            .first()
        )

    @staticmethod
    def create_service(db: Session, tenant_id: str, **service_data) -> Service:
        service = Service(tenant_id=tenant_id, **service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def update_service(db: Session, service: Service, **updates) -> Service:
        """Update a treatment with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(service, key):
                setattr(service, key, value)

        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def delete_service(db: Session, service: Service) -> None:
        db.delete(service)
        db.commit()
