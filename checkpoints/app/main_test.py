"""Unit tests for main.py FastAPI application."""

import datetime
import unittest
import unittest.mock
from collections.abc import Generator

import fastapi.testclient
import sqlalchemy.pool
import sqlmodel

from checkpoints.app import database, main, routes, services
from checkpoints.app.location.batch import BatchGeocodeScheduler
from checkpoints.app.location.boundary import BoundaryProvider
from checkpoints.app.location.colors import LocationColorAssigner
from checkpoints.app.location.coordinates import CoordinateResolver
from checkpoints.app.maps import filters


class TestApp(unittest.TestCase):
    """Tests for FastAPI application."""

    def setUp(self) -> None:
        """Set up test client."""
        self.client = fastapi.testclient.TestClient(main.app)

    def test_title(self) -> None:
        self.assertEqual(main.app.title, 'DUI Checkpoints')

    def test_health_endpoint(self) -> None:
        """Test health check endpoint."""
        response = self.client.get('/health')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'status': 'healthy'})

    def test_health_endpoint_head(self) -> None:
        """Test health check endpoint with HEAD method."""
        response = self.client.head('/health')
        self.assertEqual(response.status_code, 200)

    def test_lifespan_creates_tables(self) -> None:
        """Startup creates the database tables."""
        with unittest.mock.patch.object(
            main.database, 'create_db_and_tables'
        ) as create:
            with fastapi.testclient.TestClient(main.app):
                pass
        create.assert_called_once_with()


class TestRoutesMounted(unittest.TestCase):
    """The checkpoint router is mounted on the application."""

    def setUp(self) -> None:
        """Point the app at an empty in-memory database and a silent geocoder."""
        engine = sqlmodel.create_engine(
            'sqlite://',
            connect_args={'check_same_thread': False},
            poolclass=sqlalchemy.pool.StaticPool,
        )
        sqlmodel.SQLModel.metadata.create_all(engine)
        geocoder = unittest.mock.AsyncMock()
        geocoder.search.return_value = None
        resolver = CoordinateResolver(geocoder)
        map_services = services.MapServices(
            resolver=resolver,
            boundaries=BoundaryProvider(geocoder),
            colors=LocationColorAssigner(),
            scheduler=BatchGeocodeScheduler(resolver, delay_seconds=0.0),
        )

        def override_get_session() -> Generator[sqlmodel.Session, None, None]:
            with sqlmodel.Session(engine) as session:
                yield session

        overrides = main.app.dependency_overrides
        overrides[database.get_session] = override_get_session
        overrides[routes.get_clock] = lambda: filters.FixedClock(
            datetime.date(2025, 6, 1)
        )
        overrides[services.get_map_services] = lambda: map_services
        self.client = fastapi.testclient.TestClient(main.app)

    def tearDown(self) -> None:
        """Restore original dependency overrides."""
        main.app.dependency_overrides.clear()

    def test_list_endpoint(self) -> None:
        response = self.client.get('/api/dui-checkpoints')
        self.assertEqual(response.status_code, 200)

    def test_detail_endpoint(self) -> None:
        """An unknown id reaches the handler rather than the router's 404."""
        response = self.client.get('/api/dui-checkpoints/1')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['detail'], 'Checkpoint not found')

    def test_previous_locations_endpoint(self) -> None:
        response = self.client.get('/api/previous-locations')
        self.assertEqual(response.status_code, 400)

    def test_map_page(self) -> None:
        response = self.client.get('/map')
        self.assertEqual(response.status_code, 200)
        self.assertIn('text/html', response.headers['content-type'])


if __name__ == '__main__':
    unittest.main()
