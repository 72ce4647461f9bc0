from __future__ import annotations

import logging

from sqlalchemy.engine import Connection

logger = logging.getLogger(__name__)

FEFO_ISSUE_FUNCTION = "fefo_issue_by_barcode"

# Errors are raised with SQLSTATE P0001; the message names the failure and
# DETAIL carries the number the client needs to rebuild it.
FEFO_ISSUE_FUNCTION_SQL = """
CREATE OR REPLACE FUNCTION fefo_issue_by_barcode(
    p_barcode text,
    p_type text,
    p_qty_ea integer,
    p_note text
) RETURNS integer
LANGUAGE plpgsql
AS $$
DECLARE
    v_variant_id integer;
    v_total integer;
    v_remain integer := p_qty_ea;
    v_take integer;
    v_touched integer := 0;
    r record;
BEGIN
    IF p_type NOT IN ('OUT', 'GIFT') THEN
        RAISE EXCEPTION 'invalid_type' USING ERRCODE = 'P0001', DETAIL = p_type;
    END IF;
    IF p_qty_ea IS NULL OR p_qty_ea < 1 THEN
        RAISE EXCEPTION 'invalid_qty' USING ERRCODE = 'P0001', DETAIL = coalesce(p_qty_ea::text, 'null');
    END IF;

    SELECT id INTO v_variant_id FROM product_variants WHERE barcode = p_barcode;
    IF v_variant_id IS NULL THEN
        RAISE EXCEPTION 'item_not_registered' USING ERRCODE = 'P0001', DETAIL = p_barcode;
    END IF;

    PERFORM 1 FROM inventory_lots WHERE variant_id = v_variant_id ORDER BY id FOR UPDATE;

    SELECT coalesce(sum(s.stock_qty), 0) INTO v_total
    FROM (
        SELECT coalesce(sum(CASE WHEN m.type = 'IN' THEN m.qty ELSE -m.qty END), 0) AS stock_qty
        FROM inventory_lots l
        LEFT JOIN inventory_movements m ON m.lot_id = l.id
        WHERE l.variant_id = v_variant_id
        GROUP BY l.id
    ) s
    WHERE s.stock_qty > 0;

    IF v_total < p_qty_ea THEN
        RAISE EXCEPTION 'insufficient_stock' USING ERRCODE = 'P0001', DETAIL = v_total::text;
    END IF;

    FOR r IN
        SELECT l.id AS lot_id,
               coalesce(sum(CASE WHEN m.type = 'IN' THEN m.qty ELSE -m.qty END), 0) AS stock_qty
        FROM inventory_lots l
        LEFT JOIN inventory_movements m ON m.lot_id = l.id
        WHERE l.variant_id = v_variant_id
        GROUP BY l.id, l.expiry_date
        HAVING coalesce(sum(CASE WHEN m.type = 'IN' THEN m.qty ELSE -m.qty END), 0) > 0
        ORDER BY l.expiry_date, l.id
    LOOP
        EXIT WHEN v_remain <= 0;
        v_take := least(r.stock_qty, v_remain);
        INSERT INTO inventory_movements (lot_id, type, qty, note, created_at)
        VALUES (r.lot_id, p_type, v_take, p_note, now());
        v_remain := v_remain - v_take;
        v_touched := v_touched + 1;
    END LOOP;

    IF v_remain <> 0 THEN
        RAISE EXCEPTION 'fefo_remainder' USING ERRCODE = 'P0001', DETAIL = v_remain::text;
    END IF;

    RETURN v_touched;
END;
$$;
"""


def install_procedures(conn: Connection) -> None:
    if conn.dialect.name != "postgresql":
        logger.info("%s not installed on %s; issuance uses the client-side split",
                    FEFO_ISSUE_FUNCTION, conn.dialect.name)
        return
    conn.exec_driver_sql(FEFO_ISSUE_FUNCTION_SQL)
    logger.info("installed %s()", FEFO_ISSUE_FUNCTION)
