import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json
import logging
from dataclasses import replace
from datetime import date, datetime

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from engine import config
from engine.aggregate import recent, savings_for_month, savings_total
from engine.calendar_index import grid_cells, intensity, month_index
from engine.dates import local_day_key, month_key, parse_month_key, shift_month, to_local
from engine.domain import ALL, EXPENSE, INCOME, PAYMENT_METHODS, AppState, Category, Saving, Transaction
from engine.events import BUDGET_ALERT, DAILY_LIMIT_EXCEEDED
from engine.functional import category_display
from engine.memo import cached_breakdown, snapshot_budget, snapshot_series, snapshot_stats
from engine.search import filter_transactions
from engine import transforms
from engine.store import StateStore
from engine.trends import GRANULARITIES, period_total

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

st.set_page_config(page_title="Expense Tracker", layout="wide")

CUR = config.CURRENCY
TZ = config.local_zone()

if "store" not in st.session_state:
    try:
        initial = transforms.load_state(config.get_seed_path())
    except FileNotFoundError:
        logger.info("No seed file at %s, starting empty", config.get_seed_path())
        initial = AppState()
    store = StateStore(initial, tz=TZ)
    st.session_state.alerts = []
    store.bus.subscribe(BUDGET_ALERT, lambda e: st.session_state.alerts.append(
        f"{e.payload['name']} is at {e.payload['usage']:.0f}% of its budget"))
    store.bus.subscribe(DAILY_LIMIT_EXCEEDED, lambda e: st.session_state.alerts.append(
        f"Today's budget exceeded by {CUR}{e.payload['over_by']:,.0f}"))
    st.session_state.store = store

store: StateStore = st.session_state.store
now = datetime.now(TZ) if TZ else datetime.now().astimezone()

if store.locked:
    st.title("🔒 Secure Access")
    attempt = st.text_input("Enter your 4-digit PIN", type="password", max_chars=4)
    if attempt and len(attempt) == 4:
        if store.unlock(attempt):
            st.rerun()
        st.error("Wrong PIN")
    st.stop()

state = store.snapshot()


def money(v: float) -> str:
    return f"{CUR}{v:,.0f}"


def tx_to_df(txs) -> pd.DataFrame:
    rows = []
    for t in txs:
        shown = category_display(state.categories, t.category_id)
        rows.append({
            "date": to_local(t.date, TZ).strftime("%Y-%m-%d %H:%M"),
            "category": f"{shown.icon} {shown.name}",
            "type": t.type,
            "amount": t.amount if t.type == INCOME else -t.amount,
            "method": t.payment_method,
            "note": t.note,
        })
    return pd.DataFrame(rows, columns=["date", "category", "type", "amount", "method", "note"])


for msg in st.session_state.alerts:
    st.toast(msg)
st.session_state.alerts = []

menu = st.sidebar.radio(
    "Menu",
    ["🏠 Dashboard", "📊 Analytics", "📅 Calendar", "🧾 History", "🎯 Savings", "⚙️ Settings"]
)

if menu == "🏠 Dashboard":
    stats = snapshot_stats(state, now, TZ)
    report = snapshot_budget(state, now, TZ)

    if report.daily.exceeded:
        st.error(f"Limit Alert: today's budget exceeded by {money(report.daily.over_by)}")

    k1, k2, k3 = st.columns(3)
    k1.metric("Total Balance", money(stats.balance))
    k2.metric("Income (month)", money(stats.monthly_income))
    k3.metric("Expenses (month)", money(stats.monthly_expense))

    st.subheader("Budget Trackers")
    for title, usage in (("Daily Spending", report.daily), ("Monthly Budget", report.monthly)):
        if not usage.enabled:
            continue
        st.markdown(f"**{title}** {usage.usage:.0f}%  ·  used {money(usage.spent)} of {money(usage.limit)}")
        st.progress(min(100.0, usage.usage) / 100)

    if report.critical:
        st.subheader("Critical Categories")
        cols = st.columns(min(4, len(report.critical)))
        for i, alert in enumerate(report.critical):
            cols[i % len(cols)].metric(
                f"{alert.category.icon} {alert.category.name}",
                f"{alert.usage:.0f}%",
                f"limit {money(alert.category.budget)}",
                delta_color="inverse" if alert.exceeded else "off",
            )

    st.subheader("History")
    latest = recent(state.transactions)
    if latest:
        st.table(tx_to_df(latest))
    else:
        st.info("No activity yet.")

    with st.expander("➕ Add transaction"):
        with st.form("add_tx", clear_on_submit=True):
            c1, c2, c3 = st.columns(3)
            tx_type = c1.radio("Type", [EXPENSE, INCOME], horizontal=True)
            amount = c2.number_input("Amount", min_value=0.0, step=50.0)
            tx_date = c3.date_input("Date", value=local_day_key(now, TZ))
            cat = st.selectbox("Category", state.categories, format_func=lambda c: f"{c.icon} {c.name}")
            method = st.selectbox("Payment method", PAYMENT_METHODS)
            note = st.text_input("Note")
            location = st.text_input("Location")
            if st.form_submit_button("Save"):
                when = datetime.combine(tx_date, now.timetz())
                tx = Transaction(transforms.new_id(), float(amount), tx_type, when.isoformat(),
                                 cat.id if cat else "", method, note, location)
                result = store.save_transaction(tx, now)
                if result.is_left():
                    st.error(result.get_error()["message"])
                else:
                    st.rerun()

elif menu == "📊 Analytics":
    st.title("📊 Analytics")
    granularity = st.radio("Range", GRANULARITIES, horizontal=True)
    series = snapshot_series(state.transactions, granularity, now, TZ)
    breakdown = cached_breakdown(state.transactions, state.categories)
    global_expense = sum(row.amount for row in breakdown)

    k1, k2 = st.columns(2)
    k1.metric("Period Total", money(period_total(series)))
    k2.metric("Global Expense", money(global_expense))

    fig = go.Figure()
    fig.add_trace(go.Scatter(x=[p.label for p in series], y=[p.amount for p in series],
                             mode="lines+markers", name="Spent", line=dict(color="#06B6D4", width=3)))
    fig.update_layout(template="plotly_dark", title="Expense Trends", margin=dict(t=40, b=10, l=10, r=10))
    st.plotly_chart(fig, use_container_width=True)

    st.subheader("Top Spending Categories")
    if breakdown:
        df_cat = pd.DataFrame({
            "Category": [row.name for row in breakdown],
            "Spent": [row.amount for row in breakdown],
            "Share %": [round(row.share) for row in breakdown],
        })
        fig_cat = px.bar(df_cat, x="Spent", y="Category", orientation="h", text="Share %", template="plotly_dark")
        fig_cat.update_layout(yaxis=dict(autorange="reversed"), height=60 + 40 * len(df_cat))
        st.plotly_chart(fig_cat, use_container_width=True)
    else:
        st.info("No data recorded")

elif menu == "📅 Calendar":
    st.title("📅 Calendar")
    if "cal_month" not in st.session_state:
        today = local_day_key(now, TZ)
        st.session_state.cal_month = (today.year, today.month)
    c1, c2, c3 = st.columns([1, 3, 1])
    if c1.button("◀"):
        st.session_state.cal_month = shift_month(*st.session_state.cal_month, -1)
    if c3.button("▶"):
        st.session_state.cal_month = shift_month(*st.session_state.cal_month, 1)
    year, month = st.session_state.cal_month
    c2.subheader(date(year, month, 1).strftime("%B %Y"))

    index = month_index(state.transactions, year, month, TZ)
    cells = grid_cells(year, month)
    cells += [None] * (-len(cells) % 7)
    weeks = np.array(cells, dtype=object).reshape(-1, 7)

    heat = np.vectorize(lambda d: intensity(index[d].expense) if d else 0, otypes=[int])(weeks)
    labels = np.vectorize(lambda d: str(d.day) if d else "", otypes=[object])(weeks)
    fig = go.Figure(go.Heatmap(z=heat, text=labels, texttemplate="%{text}", zmin=0, zmax=3,
                               colorscale="Greens", showscale=False,
                               x=["S", "M", "T", "W", "T", "F", "S"]))
    fig.update_layout(template="plotly_dark", yaxis=dict(autorange="reversed", visible=False), height=340)
    st.plotly_chart(fig, use_container_width=True)

    picked = st.date_input("Day", value=date(year, month, 1), min_value=date(year, month, 1),
                           max_value=date(year, month, len(index)))
    day = index.get(picked)
    if day:
        d1, d2 = st.columns(2)
        d1.metric("Income", money(day.income))
        d2.metric("Expense", money(day.expense))
        if day.transactions:
            st.table(tx_to_df(day.transactions))
        else:
            st.info("No transactions recorded for this day")

elif menu == "🧾 History":
    st.title("🧾 History")
    search = st.text_input("Search by note or category...")
    type_filter = st.radio("Filter", [ALL, EXPENSE, INCOME], horizontal=True)
    matched = filter_transactions(state.transactions, state.categories, search, type_filter)
    if matched:
        st.dataframe(tx_to_df(matched), use_container_width=True)
        to_delete = st.selectbox("Delete entry", [None] + [t.id for t in matched])
        if to_delete and st.button("🗑 Delete"):
            store.delete_transaction(to_delete)
            st.rerun()

        editing = st.selectbox("Edit entry", [None] + list(matched),
                               format_func=lambda t: "" if t is None else f"{t.id} · {money(t.amount)} · {t.note}")
        if editing:
            with st.form("edit_tx"):
                c1, c2 = st.columns(2)
                tx_type = c1.radio("Type", [EXPENSE, INCOME], index=[EXPENSE, INCOME].index(editing.type),
                                   horizontal=True)
                amount = c2.number_input("Amount", min_value=0.0, value=float(editing.amount), step=50.0)
                cat_ids = [c.id for c in state.categories]
                cat = st.selectbox("Category", state.categories, format_func=lambda c: f"{c.icon} {c.name}",
                                   index=cat_ids.index(editing.category_id) if editing.category_id in cat_ids else 0)
                method = st.selectbox("Payment method", PAYMENT_METHODS,
                                      index=PAYMENT_METHODS.index(editing.payment_method)
                                      if editing.payment_method in PAYMENT_METHODS else 0)
                note = st.text_input("Note", value=editing.note)
                location = st.text_input("Location", value=editing.location)
                if st.form_submit_button("Update"):
                    # keeps id and date, so the entry stays in place
                    edited = replace(editing, type=tx_type, amount=float(amount),
                                     category_id=cat.id if cat else editing.category_id,
                                     payment_method=method, note=note, location=location)
                    result = store.save_transaction(edited, now)
                    if result.is_left():
                        st.error(result.get_error()["message"])
                    else:
                        st.rerun()
    else:
        st.info("No transactions found")

elif menu == "🎯 Savings":
    selected = state.selected_month or month_key(now.year, now.month)
    st.title(f"🎯 Savings ({selected})")
    y, m = parse_month_key(selected)
    p1, p2 = st.columns(2)
    if p1.button("◀ Previous month"):
        store.update(lambda s: transforms.select_month(s, month_key(*shift_month(y, m, -1))))
        st.rerun()
    if p2.button("Next month ▶"):
        store.update(lambda s: transforms.select_month(s, month_key(*shift_month(y, m, 1))))
        st.rerun()

    st.metric("Saved this month", money(savings_total(state.savings, selected)))
    for s in savings_for_month(state.savings, selected):
        st.write(f"{money(s.amount)} · {s.note or 'Savings'}")
    with st.form("add_saving", clear_on_submit=True):
        amount = st.number_input("Amount", min_value=0.0, step=100.0)
        note = st.text_input("Note")
        if st.form_submit_button("Save") and amount > 0:
            saving = Saving(transforms.new_id(), float(amount), selected, note, now.isoformat())
            store.update(lambda s: transforms.add_saving(s, saving))
            st.rerun()

elif menu == "⚙️ Settings":
    st.title("⚙️ Settings")
    st.subheader("Budgets")
    monthly = st.number_input("Monthly budget", min_value=0.0, value=float(state.budget.total_monthly), step=500.0)
    daily = st.number_input("Daily limit", min_value=0.0, value=float(state.budget.daily_limit), step=100.0)
    if st.button("Save budgets"):
        store.update(lambda s: transforms.update_budget(transforms.update_budget(s, "total_monthly", monthly),
                                                        "daily_limit", daily))
        st.rerun()

    st.subheader("Categories")
    st.table(pd.DataFrame([
        {"icon": c.icon, "name": c.name, "budget": money(c.budget) if c.budget else "No Limit",
         "private": "🔒" if c.is_private else ""}
        for c in state.categories
    ]))
    with st.form("category", clear_on_submit=True):
        name = st.text_input("Name")
        icon = st.text_input("Icon", value="📦")
        color = st.color_picker("Color", value="#10B981")
        cat_budget = st.number_input("Monthly limit (0 = none)", min_value=0.0, step=100.0)
        private = st.checkbox("Private")
        if st.form_submit_button("Add category") and name:
            new_cat = Category(transforms.new_id(), name, icon, color, private, float(cat_budget))
            store.update(lambda s: transforms.upsert_category(s, new_cat))
            st.rerun()
    to_remove = st.selectbox("Delete category", [None] + list(state.categories),
                             format_func=lambda c: "" if c is None else c.name)
    if to_remove and st.button("Delete category"):
        store.update(lambda s: transforms.delete_category(s, to_remove.id))
        st.rerun()

    st.subheader("Security")
    if state.pin:
        if st.button("Disable PIN"):
            store.disable_pin()
            st.rerun()
    else:
        new_pin = st.text_input("New 4-digit PIN", type="password", max_chars=4)
        if st.button("Enable PIN"):
            result = store.enable_pin(new_pin)
            if result.is_left():
                st.error(result.get_error()["message"])
            else:
                st.rerun()

    st.subheader("Danger Zone")
    st.download_button("⬇ Export Data (Backup)", json.dumps(transforms.state_to_dict(state), ensure_ascii=False),
                       file_name="expense_backup.json", mime="application/json")
    scope = st.selectbox("Reset", [transforms.RESET_EXPENSES, transforms.RESET_INCOME,
                                   transforms.RESET_BALANCE, transforms.RESET_CATEGORIES, transforms.RESET_ALL])
    if st.button("Reset", type="primary"):
        store.update(lambda s: transforms.reset_state(s, scope))
        st.rerun()
