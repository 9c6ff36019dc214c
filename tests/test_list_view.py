import random
import unittest
from datetime import date

from dashboard.schemas.listing import DateRange, FilterCriteria, SortState
from dashboard.services.comparator import UnknownSortKey
from dashboard.services.list_registry import CAJAS, GASTOS, MOVIMIENTOS_CAJA, VENTAS
from dashboard.services.list_view import ListViewController, UnknownFilterField


def _caja(index, activo=True):
    return {
        "id": index,
        "descripcion": f"Caja {index:02d}",
        "saldo": str(index * 100),
        "activo": activo,
        "createdAt": f"2024-01-{index:02d}T09:00:00.000Z",
    }


CAJA_ROWS = [_caja(index, activo=index % 5 != 0) for index in range(1, 26)]


def _movement(index):
    return {
        "id": index,
        "fecha": f"2024-03-{index:02d}T00:00:00.000Z",
        "createdAt": f"2024-03-{index:02d}T10:00:00.000Z",
        "detalle": f"Movimiento {index}",
        "saldo": index,
    }


def _descriptions(rows):
    return [row["descripcion"] for row in rows]


class LocalListTests(unittest.TestCase):
    def setUp(self):
        self.controller = ListViewController(CAJAS, page_size=10)
        self.controller.refresh(CAJA_ROWS)

    def test_initial_view_before_any_batch(self):
        view = ListViewController(CAJAS).view()
        self.assertEqual(view.total_items, 0)
        self.assertEqual(view.total_pages, 1)
        self.assertEqual(view.current_page, 1)
        self.assertEqual(view.rows, [])
        self.assertEqual(view.window, [1])
        self.assertEqual((view.first_item, view.last_item), (0, 0))
        self.assertEqual(view.load_state, "idle")
        self.assertEqual(view.page_size_options, [10, 25, 50, 100])

    def test_first_page_uses_default_sort(self):
        view = self.controller.view()
        self.assertEqual(view.total_items, 25)
        self.assertEqual(view.total_pages, 3)
        self.assertEqual(_descriptions(view.rows), [f"Caja {index:02d}" for index in range(1, 11)])
        self.assertEqual((view.first_item, view.last_item), (1, 10))
        self.assertFalse(view.can_go_previous)
        self.assertTrue(view.can_go_next)
        self.assertEqual(view.load_state, "ready")

    def test_navigation_is_clamped(self):
        self.controller.last()
        self.assertEqual(self.controller.current_page, 3)
        self.assertEqual(len(self.controller.visible_rows()), 5)
        self.controller.next()
        self.assertEqual(self.controller.current_page, 3)
        self.controller.go_to(99)
        self.assertEqual(self.controller.current_page, 3)
        self.controller.go_to(0)
        self.assertEqual(self.controller.current_page, 1)
        self.controller.go_to(-5)
        self.assertEqual(self.controller.current_page, 1)
        self.controller.previous()
        self.assertEqual(self.controller.current_page, 1)

    def test_last_page_item_range(self):
        self.controller.go_to(3)
        view = self.controller.view()
        self.assertEqual((view.first_item, view.last_item), (21, 25))
        self.assertFalse(view.can_go_next)

    def test_changing_filters_returns_to_first_page(self):
        self.controller.go_to(3)
        self.controller.set_filters(FilterCriteria(search_text="caja 2"))
        self.assertEqual(self.controller.current_page, 1)
        self.assertEqual(self.controller.total_items, 6)
        self.assertEqual(_descriptions(self.controller.visible_rows())[0], "Caja 20")

    def test_equality_filter_on_local_list(self):
        self.controller.set_filters(FilterCriteria(equality_filters={"activo": "false"}))
        self.assertEqual(
            _descriptions(self.controller.visible_rows()),
            ["Caja 05", "Caja 10", "Caja 15", "Caja 20", "Caja 25"],
        )

    def test_changing_sort_keeps_the_current_page(self):
        self.controller.go_to(2)
        self.controller.set_sort("saldo")
        self.assertEqual(self.controller.current_page, 2)
        self.assertEqual(self.controller.sort, SortState(key="saldo", direction="asc"))
        self.controller.set_sort("saldo")
        self.assertEqual(self.controller.sort.direction, "desc")
        self.assertEqual(self.controller.current_page, 2)
        self.assertEqual(
            [row["id"] for row in self.controller.visible_rows()],
            list(range(15, 5, -1)),
        )

    def test_explicit_sort_direction(self):
        self.controller.set_sort("descripcion", "desc")
        self.assertEqual(_descriptions(self.controller.visible_rows())[0], "Caja 25")

    def test_changing_page_size_returns_to_first_page(self):
        self.controller.go_to(2)
        self.controller.set_page_size(5)
        self.assertEqual(self.controller.current_page, 1)
        self.assertEqual(self.controller.total_pages, 5)
        self.controller.set_page_size(0)
        self.assertEqual(self.controller.page_size, 1)

    def test_refresh_keeps_page_while_it_exists(self):
        self.controller.go_to(2)
        self.controller.refresh(CAJA_ROWS[:15])
        self.assertEqual(self.controller.current_page, 2)
        self.controller.refresh(CAJA_ROWS[:5])
        self.assertEqual(self.controller.current_page, 1)

    def test_empty_batch_still_reports_one_page(self):
        self.controller.go_to(3)
        self.controller.refresh([])
        view = self.controller.view()
        self.assertEqual((view.current_page, view.total_pages, view.total_items), (1, 1, 0))
        self.assertEqual(view.rows, [])

    def test_export_rows_cover_the_whole_filtered_set(self):
        self.controller.set_filters(FilterCriteria(equality_filters={"activo": True}))
        self.controller.set_sort("saldo", "desc")
        rows = self.controller.export_rows()
        self.assertEqual(len(rows), 20)
        self.assertEqual(rows[0]["id"], 24)

    def test_local_lists_send_no_paging_params(self):
        self.assertEqual(self.controller.server_params(), {})

    def test_unknown_sort_and_filter_are_rejected(self):
        with self.assertRaises(UnknownSortKey):
            self.controller.set_sort("nope")
        with self.assertRaises(UnknownFilterField):
            self.controller.set_filters(FilterCriteria(equality_filters={"nope": 1}))
        self.assertEqual(self.controller.sort.key, "descripcion")

    def test_page_stays_in_range_across_random_transitions(self):
        rng = random.Random(7)
        for _ in range(300):
            step = rng.randrange(6)
            if step == 0:
                self.controller.go_to(rng.randint(-3, 12))
            elif step == 1:
                self.controller.set_page_size(rng.randint(1, 30))
            elif step == 2:
                self.controller.set_filters(FilterCriteria(search_text=rng.choice(["", "caja 1", "caja 2", "zz"])))
            elif step == 3:
                self.controller.set_sort(rng.choice(["descripcion", "saldo", "activo", "createdAt"]))
            elif step == 4:
                self.controller.refresh(CAJA_ROWS[: rng.randint(0, 25)])
            else:
                rng.choice([self.controller.first, self.controller.previous, self.controller.next, self.controller.last])()
            view = self.controller.view()
            self.assertGreaterEqual(view.current_page, 1)
            self.assertLessEqual(view.current_page, view.total_pages)
            self.assertLessEqual(len(view.rows), view.page_size)


class RefreshTicketTests(unittest.TestCase):
    def test_only_the_latest_refresh_is_applied(self):
        controller = ListViewController(CAJAS)
        older = controller.begin_refresh()
        newer = controller.begin_refresh()
        self.assertTrue(controller.apply_refresh(newer, CAJA_ROWS[:3]))
        self.assertFalse(controller.apply_refresh(older, CAJA_ROWS))
        self.assertEqual(controller.total_items, 3)

    def test_failed_load_keeps_previous_records(self):
        controller = ListViewController(CAJAS)
        controller.refresh(CAJA_ROWS)
        ticket = controller.begin_refresh()
        self.assertEqual(controller.load_state, "loading")
        self.assertTrue(controller.mark_load_failed(ticket, "API caída"))
        view = controller.view()
        self.assertEqual(view.load_state, "failed")
        self.assertEqual(view.last_error, "API caída")
        self.assertEqual(view.total_items, 25)

    def test_failure_of_a_superseded_load_is_ignored(self):
        controller = ListViewController(CAJAS)
        older = controller.begin_refresh()
        controller.begin_refresh()
        self.assertFalse(controller.mark_load_failed(older, "timeout"))
        self.assertEqual(controller.load_state, "loading")


class HybridListTests(unittest.TestCase):
    def setUp(self):
        self.controller = ListViewController(MOVIMIENTOS_CAJA, page_size=10)
        self.controller.refresh([_movement(index) for index in range(1, 11)], total=35)

    def test_totals_come_from_the_server(self):
        view = self.controller.view()
        self.assertEqual(view.total_items, 35)
        self.assertEqual(view.total_pages, 4)
        self.assertEqual(len(view.rows), 10)
        self.assertEqual(view.rows[0]["id"], 10)
        self.assertEqual(view.window, [1, 2, 3, 4])
        self.assertFalse(self.controller.is_stale)

    def test_page_change_marks_the_batch_stale(self):
        self.controller.go_to(3)
        self.assertTrue(self.controller.is_stale)
        self.assertEqual(self.controller.server_params(), {"page": 3, "limit": 10})

    def test_sort_reorders_the_held_page_without_refetch(self):
        self.controller.set_sort("saldo")
        self.assertFalse(self.controller.is_stale)
        self.assertEqual(self.controller.visible_rows()[0]["id"], 1)

    def test_filters_are_sent_to_the_server(self):
        self.controller.go_to(2)
        self.controller.set_filters(
            FilterCriteria(
                search_text="  ajuste ",
                date_range=DateRange(date_from=date(2024, 3, 1), date_to=date(2024, 3, 31)),
            )
        )
        self.assertTrue(self.controller.is_stale)
        self.assertEqual(
            self.controller.server_params(),
            {"page": 1, "limit": 10, "search": "ajuste", "from": "2024-03-01", "to": "2024-03-31"},
        )

    def test_server_total_shrink_clamps_page_and_requests_refetch(self):
        self.controller.go_to(4)
        self.controller.refresh([], total=12)
        self.assertEqual(self.controller.current_page, 2)
        self.assertTrue(self.controller.is_stale)
        self.controller.refresh([_movement(11), _movement(12)], total=12)
        self.assertFalse(self.controller.is_stale)

    def test_item_range_uses_server_offset(self):
        self.controller.go_to(3)
        self.controller.refresh([_movement(index) for index in range(21, 31)], total=35)
        view = self.controller.view()
        self.assertEqual((view.first_item, view.last_item), (21, 30))

    def test_equality_filters_are_serialized_for_the_query(self):
        controller = ListViewController(GASTOS, page_size=25)
        controller.set_filters(FilterCriteria(equality_filters={"activo": False, "cajaId": 3, "tipoGastoId": ""}))
        self.assertEqual(controller.server_params(), {"page": 1, "limit": 25, "activo": "false", "cajaId": 3})

    def test_unpaged_server_batch_is_sliced_to_the_page_size(self):
        controller = ListViewController(GASTOS, page_size=10)
        controller.refresh([_movement(index) for index in range(1, 26)], total=None)
        view = controller.view()
        self.assertEqual(len(view.rows), 10)
        self.assertEqual(view.total_pages, 3)
        self.assertEqual((view.first_item, view.last_item), (1, 10))
        self.assertEqual([row["id"] for row in view.rows], list(range(25, 15, -1)))

        controller.go_to(3)
        view = controller.view()
        self.assertEqual([row["id"] for row in view.rows], [5, 4, 3, 2, 1])
        self.assertEqual((view.first_item, view.last_item), (21, 25))

    def test_default_filters_apply_from_the_start(self):
        controller = ListViewController(VENTAS)
        self.assertEqual(controller.criteria.equality_filters, {"activo": True})
        self.assertEqual(controller.server_params()["activo"], "true")


if __name__ == "__main__":
    unittest.main()
