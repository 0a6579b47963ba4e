"""CRUD operations for companies, people and places."""

from rentsync import schemas
from rentsync.crud._base_system import CRUDBaseSystem
from rentsync.models.company import Company
from rentsync.models.person import Person
from rentsync.models.place import Place


class CRUDCompany(CRUDBaseSystem[Company, schemas.CompanyCreate, schemas.CompanyCreate]):
    """CRUD operations for companies."""

    pass


class CRUDPerson(CRUDBaseSystem[Person, schemas.PersonCreate, schemas.PersonCreate]):
    """CRUD operations for people."""

    pass


class CRUDPlace(CRUDBaseSystem[Place, schemas.PlaceCreate, schemas.PlaceCreate]):
    """CRUD operations for places."""

    pass


company = CRUDCompany(Company)
person = CRUDPerson(Person)
place = CRUDPlace(Place)
