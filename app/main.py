import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import date
from uuid import uuid4

import numpy as np
import pandas as pd
import plotly.express as px
import streamlit as st

from subtracker.aggregator import (
    aggregate_by_category,
    dashboard_summary,
    portfolio_totals,
    recommend_budget_actions,
    top_subscriptions,
)
from subtracker.domain import BillingCycle, QueryState, SortKey, Subscription
from subtracker.normalizer import normalize, normalize_all
from subtracker.query import category_name, evaluate_page
from subtracker.renewals import upcoming_renewals
from subtracker.settings import get_settings
from subtracker.transforms import (
    add_category,
    add_subscription,
    delete_category,
    delete_subscription,
    load_seed,
    rename_category,
    subscription_from_record,
    update_subscription,
)
from subtracker.utils import format_money, get_logger

settings = get_settings()
logger = get_logger("subtracker.app", settings.log_level)

st.set_page_config(page_title="Subscription Tracker", layout="wide")


def money(value) -> str:
    return format_money(value, settings.currency_symbol)


if "sub_categories" not in st.session_state:
    categories, subscriptions, rejected = load_seed(settings.seed_path)
    st.session_state.sub_categories = categories
    st.session_state.sub_subscriptions = subscriptions
    st.session_state.sub_rejected = rejected

if "sub_query" not in st.session_state:
    st.session_state.sub_query = QueryState(page_size=settings.page_size)

categories = st.session_state.sub_categories
normalized_result = normalize_all(st.session_state.sub_subscriptions)
if normalized_result.is_left():
    err = normalized_result.get_error()
    logger.error("Could not normalize subscription %s: %s", err.get("subscription_id"), err["message"])
    st.error(err["message"])
    st.stop()
normalized = normalized_result.get_or_else(())

if st.session_state.sub_rejected:
    st.sidebar.warning(f"{len(st.session_state.sub_rejected)} record(s) were rejected on load")

today = st.sidebar.date_input("Today", value=date.today())

menu = st.sidebar.radio(
    "Menu",
    ["🏠 Dashboard", "🧾 Subscriptions", "🗂 Categories", "📅 Renewals"]
)


def subscriptions_df(items) -> pd.DataFrame:
    rows = [{
        "Service": s.service_name,
        "Cost": money(s.cost),
        "Billing Cycle": s.billing_cycle.value,
        "Category": category_name(categories, s.category_id),
        "Auto Renews": "Yes" if s.auto_renews else "No",
        "Start Date": s.start_date.isoformat(),
        "Monthly": money(s.monthly_cost),
        "Annualized": money(s.annualized_cost),
    } for s in items]
    return pd.DataFrame(rows)


if menu == "🏠 Dashboard":
    st.title("🏠 Dashboard")
    summary = dashboard_summary(normalized)
    k1, k2, k3, k4 = st.columns(4)
    with k1:
        st.metric("Total Monthly Cost", money(summary.totals.total_monthly_cost))
    with k2:
        st.metric("Total Annualized Cost", money(summary.totals.total_annualized_cost))
    with k3:
        highest = summary.highest_subscription
        st.metric(
            "Highest Subscription",
            highest.service_name if highest else "N/A",
            f"{money(highest.annualized_cost)} / year" if highest else None,
            delta_color="off",
        )
    with k4:
        st.metric("Total Subscriptions", summary.totals.subscription_count)

    stats = aggregate_by_category(normalized, categories)
    for rec in recommend_budget_actions(
        stats, settings.thresholds(), summary.totals, settings.currency_symbol
    ):
        if rec.level == "warning":
            st.warning(rec.message)
        elif rec.level == "info":
            st.info(rec.message)
        else:
            st.success(rec.message)

    top = list(top_subscriptions(normalized, 5))
    if top:
        fig_top = px.bar(
            x=[s.service_name for s in top],
            y=[float(s.annualized_cost) for s in top],
            labels={"x": "Service", "y": f"Annualized cost ({settings.currency_symbol})"},
            title="Most Expensive Subscriptions",
            template="plotly_dark",
        )
        st.plotly_chart(fig_top, use_container_width=True)

    st.subheader(f"Upcoming Renewals (Next {settings.renewal_horizon_days} Days)")
    renewals = upcoming_renewals(normalized, today, settings.renewal_horizon_days).get_or_else(())
    if not renewals:
        st.info(f"No upcoming renewals in the next {settings.renewal_horizon_days} days.")
    for entry in renewals:
        c1, c2 = st.columns([3, 1])
        c1.markdown(
            f"**{entry.subscription.service_name}**  \n"
            f"Renews on {entry.next_renewal_date.isoformat()} (in {entry.days_until} days)"
        )
        c2.markdown(f"**{money(entry.subscription.annualized_cost)} / year**")

elif menu == "🧾 Subscriptions":
    st.title("🧾 Subscriptions")
    query: QueryState = st.session_state.sub_query

    category_options = {None: "All Categories", **{c.id: c.name for c in categories}}
    cycle_options = [None] + list(BillingCycle)
    sort_labels = {
        SortKey.START_DATE: "Sort by Start Date",
        SortKey.COST: "Sort by Cost",
        SortKey.ANNUALIZED_COST: "Sort by Annualized Cost",
    }

    col1, col2, col3, col4 = st.columns([3, 2, 2, 2])
    with col1:
        search_text = st.text_input("Search", value=query.search_text, placeholder="Search by service or category...")
    with col2:
        category_filter = st.selectbox(
            "Category",
            options=list(category_options),
            index=list(category_options).index(query.category_filter)
            if query.category_filter in category_options else 0,
            format_func=lambda cid: category_options[cid],
        )
    with col3:
        cycle_filter = st.selectbox(
            "Billing Cycle",
            options=cycle_options,
            index=cycle_options.index(query.billing_cycle_filter),
            format_func=lambda c: "All Cycles" if c is None else c.value,
        )
    with col4:
        sort_key = st.selectbox(
            "Sort",
            options=list(sort_labels),
            index=list(sort_labels).index(query.sort_key),
            format_func=lambda k: sort_labels[k],
        )

    query = query.with_changes(
        search_text=search_text,
        category_filter=category_filter,
        billing_cycle_filter=cycle_filter,
        sort_key=sort_key,
    )

    page_result = evaluate_page(normalized, categories, query)
    if page_result.is_left():
        st.error(page_result.get_error()["message"])
    else:
        result, page_index, items = page_result.get_or_else(None)
        if page_index != query.page_index:
            query = query.with_changes(page_index=1)
            page_result = evaluate_page(normalized, categories, query)
            result, page_index, items = page_result.get_or_else(None)
        st.caption(f"{result.total_matched} matching subscription(s)")
        if items:
            st.dataframe(subscriptions_df(items), use_container_width=True, hide_index=True)
            csv = subscriptions_df(result.items).to_csv(index=False)
            st.download_button("⬇ Download CSV", csv, file_name="subscriptions.csv", mime="text/csv")
        else:
            st.info("No subscriptions match the selected filters")

        p1, p2, p3 = st.columns([1, 2, 1])
        with p1:
            if st.button("◀ Previous", disabled=page_index <= 1):
                query = query.with_changes(page_index=page_index - 1)
                st.session_state.sub_query = query
                st.rerun()
        with p2:
            st.markdown(f"Page {page_index} of {result.page_count}")
        with p3:
            if st.button("Next ▶", disabled=page_index >= result.page_count):
                query = query.with_changes(page_index=page_index + 1)
                st.session_state.sub_query = query
                st.rerun()

    st.session_state.sub_query = query

    st.divider()
    st.subheader("➕ Add / Edit Subscription")
    existing = {s.id: s for s in st.session_state.sub_subscriptions}
    editing_id = st.selectbox(
        "Subscription",
        options=[None] + list(existing),
        format_func=lambda sid: "New subscription" if sid is None else existing[sid].service_name,
    )
    current: Subscription | None = existing.get(editing_id)

    k1, k2, k3 = st.columns([2, 2, 3])
    with k1:
        cost = st.text_input(
            "Cost", value=str(current.cost) if current else "", key=f"sub_cost_{editing_id}"
        )
    with k2:
        cycle = st.selectbox(
            "Billing Cycle",
            options=list(BillingCycle),
            index=list(BillingCycle).index(current.billing_cycle) if current else 0,
            format_func=lambda c: c.value,
            key=f"sub_cycle_{editing_id}",
        )
    with k3:
        preview = normalize(cost, cycle)
        if preview.is_right():
            breakdown = preview.get_or_else(None)
            st.markdown(
                f"**Annualized Cost: {money(breakdown.annualized_cost)}**  \n"
                f"Monthly: {money(breakdown.monthly_cost)}"
            )
        elif cost.strip():
            st.caption(preview.get_error()["message"])

    with st.form("subscription_form", clear_on_submit=current is None):
        c1, c2 = st.columns(2)
        with c1:
            service_name = st.text_input("Service Name", value=current.service_name if current else "")
        with c2:
            cat_ids = [c.id for c in categories]
            category_id = st.selectbox(
                "Category",
                options=[None] + cat_ids,
                index=(cat_ids.index(current.category_id) + 1)
                if current and current.category_id in cat_ids else 0,
                format_func=lambda cid: category_name(categories, cid),
            )
            auto_renews = st.checkbox("Auto Renews", value=current.auto_renews if current else True)
            start_date = st.date_input("Start Date", value=current.start_date if current else today)

        submitted = st.form_submit_button("Save")
        if submitted:
            record = {
                "id": current.id if current else uuid4().hex,
                "service_name": service_name,
                "cost": cost,
                "billing_cycle": cycle.value,
                "category_id": category_id,
                "auto_renews": auto_renews,
                "start_date": start_date,
            }
            parsed = subscription_from_record(record)
            if parsed.is_left():
                st.error(parsed.get_error()["message"])
            else:
                sub = parsed.get_or_else(None)
                if current:
                    st.session_state.sub_subscriptions = update_subscription(
                        st.session_state.sub_subscriptions, sub
                    ).get_or_else(st.session_state.sub_subscriptions)
                    logger.info("Updated subscription %s", sub.id)
                else:
                    st.session_state.sub_subscriptions = add_subscription(
                        st.session_state.sub_subscriptions, sub
                    )
                    logger.info("Added subscription %s", sub.id)
                st.session_state.sub_query = st.session_state.sub_query.with_changes(page_index=1)
                st.rerun()

    if current and st.button("🗑 Delete Subscription"):
        st.session_state.sub_subscriptions = delete_subscription(
            st.session_state.sub_subscriptions, current.id
        )
        st.session_state.sub_query = st.session_state.sub_query.with_changes(page_index=1)
        logger.info("Deleted subscription %s", current.id)
        st.rerun()

elif menu == "🗂 Categories":
    st.title("🗂 Categories")
    stats = aggregate_by_category(normalized, categories)
    totals = portfolio_totals(normalized)

    cat_cols = st.columns([3, 2])
    with cat_cols[0]:
        stats_df = pd.DataFrame([{
            "Category": stat.name,
            "Subscriptions": stat.subscription_count,
            "Monthly": money(stat.total_monthly_cost),
            "Annualized": money(stat.total_annualized_cost),
        } for stat in stats])
        if not stats_df.empty:
            st.dataframe(stats_df, use_container_width=True, hide_index=True)
        categorized = sum(stat.subscription_count for stat in stats)
        if categorized < totals.subscription_count:
            st.caption(f"{totals.subscription_count - categorized} subscription(s) are Uncategorized")
    with cat_cols[1]:
        chart_data = [
            {"Category": stat.name, "Annualized": float(stat.total_annualized_cost)}
            for stat in stats if stat.subscription_count
        ]
        if chart_data:
            fig_cat = px.pie(
                pd.DataFrame(chart_data),
                values="Annualized",
                names="Category",
                title="Annualized Cost by Category",
            )
            fig_cat.update_layout(height=320)
            st.plotly_chart(fig_cat, use_container_width=True)

    for stat in stats:
        with st.expander(f"{stat.name} ({stat.subscription_count})"):
            if stat.members:
                st.dataframe(subscriptions_df(stat.members), use_container_width=True, hide_index=True)
            else:
                st.caption("No subscriptions in this category")

    st.divider()
    st.subheader("➕ Manage Categories")
    with st.form("category_form", clear_on_submit=True):
        target = st.selectbox(
            "Category",
            options=[None] + [c.id for c in categories],
            format_func=lambda cid: "New category" if cid is None else category_name(categories, cid),
        )
        new_name = st.text_input("Category Name")
        save, remove = st.columns(2)
        saved = save.form_submit_button("Save")
        removed = remove.form_submit_button("Delete")

        if saved:
            if target is None:
                outcome = add_category(categories, uuid4().hex, new_name)
            else:
                outcome = rename_category(categories, target, new_name)
            if outcome.is_left():
                st.error(outcome.get_error()["message"])
            else:
                st.session_state.sub_categories = outcome.get_or_else(categories)
                st.rerun()
        if removed and target is not None:
            st.session_state.sub_categories = delete_category(categories, target)
            logger.info("Deleted category %s", target)
            st.rerun()

elif menu == "📅 Renewals":
    st.title("📅 Renewal Calendar")
    horizon = st.slider("Horizon (days)", min_value=0, max_value=365, value=settings.renewal_horizon_days)
    result = upcoming_renewals(normalized, today, horizon)
    if result.is_left():
        st.error(result.get_error()["message"])
    else:
        entries = result.get_or_else(())
        if not entries:
            st.info(f"No renewals in the next {horizon} days.")
        else:
            charges = np.array([float(e.subscription.cost) for e in entries])
            renewals_df = pd.DataFrame({
                "Date": [e.next_renewal_date for e in entries],
                "Service": [e.subscription.service_name for e in entries],
                "Charge": charges,
                "Cumulative": np.cumsum(charges),
            })
            fig_ts = px.line(
                renewals_df,
                x="Date",
                y="Cumulative",
                markers=True,
                hover_name="Service",
                title="Cumulative Renewal Charges",
                template="plotly_dark",
            )
            st.plotly_chart(fig_ts, use_container_width=True)
            st.dataframe(
                renewals_df.assign(
                    Charge=[money(e.subscription.cost) for e in entries],
                    Cumulative=renewals_df["Cumulative"].map(lambda v: f"{settings.currency_symbol}{v:,.2f}"),
                    Date=renewals_df["Date"].map(lambda d: d.isoformat()),
                ),
                use_container_width=True,
                hide_index=True,
            )
