"""HTML report generator. Produces the self-contained review dashboard.

Approve buttons are always emitted disabled and hidden. The page script only
enables them after a successful liveness probe against the local server, so a
report opened from disk or from a CI artifact viewer is strictly read-only.
"""

from __future__ import annotations

import html
import logging
from pathlib import Path
from urllib.parse import quote

from witness.models.comparison import ComparisonResult, ComparisonStatus, VerificationSummary

logger = logging.getLogger(__name__)

STATUS_ENDPOINT = "/api/status"
APPROVE_ENDPOINT = "/api/accept-baseline"
PROBE_TIMEOUT_SECONDS = 5
AUTO_REFRESH_SECONDS = 10

STATUS_COLORS = {
    "passed": "#10b981",
    "failed": "#ef4444",
    "new": "#3b82f6",
    "missing": "#f59e0b",
    "error": "#6b7280",
}

# Summary/filter order and labels
CATEGORY_LABELS = [
    ("passed", "Passed"),
    ("failed", "Failed"),
    ("new", "New"),
    ("missing", "Missing"),
    ("error", "Errors"),
]


def image_src(name: str, kind: str) -> str:
    """Relative URL of a report image copied by the reporter."""
    return f"images/{quote(name)}-{kind}.png"


def _status_badge(status: str) -> str:
    color = STATUS_COLORS.get(status, STATUS_COLORS["error"])
    return (
        f'<span class="status-badge status-{status}" style="background-color: {color}">'
        f'{status.capitalize()}</span>'
    )


def _image_container(name: str, kind: str, label: str, single: bool = False) -> str:
    cls = "image-container single" if single else "image-container"
    alt = html.escape(f"{name} {kind}")
    return f'''
        <div class="{cls}">
          <div class="image-label">{label}</div>
          <img src="{html.escape(image_src(name, kind))}" alt="{alt}" loading="lazy"/>
        </div>'''


def _build_images(r: ComparisonResult) -> str:
    if r.status == ComparisonStatus.NEW.value:
        return f'<div class="image-panel">{_image_container(r.name, "current", "Current (New)", single=True)}</div>'
    if r.status == ComparisonStatus.MISSING.value:
        return (
            f'<div class="image-panel">{_image_container(r.name, "baseline", "Baseline (Missing Current)", single=True)}</div>'
            '<div class="warning-message">&#9888; Current screenshot is missing. '
            'This test may have been intentionally deleted.</div>'
        )
    if r.status == ComparisonStatus.ERROR.value:
        message = html.escape(r.error or "Unknown error occurred")
        return f'<div class="error-message">&#10060; Error: {message}</div>'
    return (
        '<div class="image-panel three-panel">'
        + _image_container(r.name, "baseline", "Baseline")
        + _image_container(r.name, "current", "Current")
        + _image_container(r.name, "diff", "Diff")
        + '</div>'
    )


def _build_comparison_card(r: ComparisonResult) -> str:
    """Build the HTML card for one snapshot."""
    name = html.escape(r.name)
    meta = _status_badge(r.status)
    if r.status in (ComparisonStatus.PASSED.value, ComparisonStatus.FAILED.value):
        meta += f' <span class="diff-ratio">{r.diff_pixel_ratio * 100:.2f}% diff</span>'

    actions = ""
    if r.approvable:
        # Inert until the page script confirms the local server is alive
        actions = f'''
      <div class="card-actions">
        <button class="approve-btn" data-snapshot-name="{name}" data-action="approve" disabled hidden>
          &#10003; Approve Change
        </button>
      </div>'''

    return f'''
    <div class="comparison-card" data-status="{r.status}" data-snapshot-name="{name}">
      <div class="card-header">
        <h3 class="screenshot-name">{name}</h3>
        <div class="card-meta">{meta}</div>
      </div>
      {_build_images(r)}{actions}
    </div>'''


def _build_summary(summary: VerificationSummary) -> str:
    """Summary tiles for Total plus every non-empty category."""
    counts = summary.category_counts()
    tiles = [f'<div class="summary-card"><div class="label">Total</div><div class="value">{summary.total}</div></div>']
    for status, label in CATEGORY_LABELS:
        if status in counts:
            tiles.append(
                f'<div class="summary-card summary-{status}"><div class="label">{label}</div>'
                f'<div class="value" style="color: {STATUS_COLORS[status]}">{counts[status]}</div></div>'
            )
    return "\n        ".join(tiles)


def _build_filters(summary: VerificationSummary) -> str:
    counts = summary.category_counts()
    buttons = ['<button class="filter-btn active" data-filter="all">All</button>']
    for status, label in CATEGORY_LABELS:
        if status in counts:
            buttons.append(f'<button class="filter-btn" data-filter="{status}">{label}</button>')
    return "\n      ".join(buttons)


_GATE_SCRIPT = """
  const PROBE_TIMEOUT_MS = __PROBE_TIMEOUT_MS__;
  const REFRESH_INTERVAL_MS = __REFRESH_INTERVAL_MS__;
  const STATUS_URL = '__STATUS_ENDPOINT__';
  const APPROVE_URL = '__APPROVE_ENDPOINT__';

  // 'offline' until a probe succeeds; nothing else may set 'live'
  let gateState = 'offline';
  let refreshTimer = null;
  const notice = document.getElementById('readonly-notice');
  const approveButtons = document.querySelectorAll('.approve-btn');

  async function probeServer() {
    if (location.protocol !== 'http:' && location.protocol !== 'https:') return false;
    const controller = new AbortController();
    const timer = setTimeout(() => controller.abort(), PROBE_TIMEOUT_MS);
    try {
      const res = await fetch(STATUS_URL, { cache: 'no-store', signal: controller.signal });
      if (!res.ok) return false;
      const body = await res.json();
      return Boolean(body && body.status === 'ok');
    } catch (e) {
      return false;
    } finally {
      clearTimeout(timer);
    }
  }

  function applyGate(state) {
    gateState = state;
    const live = state === 'live';
    document.body.dataset.gate = state;
    approveButtons.forEach(btn => {
      if (btn.dataset.approved === 'true') return;
      btn.disabled = !live;
      btn.hidden = !live;
    });
    notice.hidden = live;
    if (live && refreshTimer === null) {
      refreshTimer = setInterval(() => location.reload(), REFRESH_INTERVAL_MS);
    } else if (!live && refreshTimer !== null) {
      clearInterval(refreshTimer);
      refreshTimer = null;
    }
  }

  async function refreshGate() {
    applyGate((await probeServer()) ? 'live' : 'offline');
  }

  async function approve(btn) {
    if (gateState !== 'live') return;
    const name = btn.dataset.snapshotName;
    btn.disabled = true;
    try {
      const res = await fetch(APPROVE_URL, {
        method: 'POST',
        headers: { 'Content-Type': 'application/json' },
        body: JSON.stringify({ snapshotName: name }),
      });
      const result = await res.json();
      if (res.ok && result.success) {
        btn.dataset.approved = 'true';
        btn.textContent = 'Approved';
        btn.closest('.comparison-card').classList.add('approved');
      } else {
        btn.disabled = false;
        alert('Approval failed: ' + (result.message || result.error || res.status));
      }
    } catch (e) {
      // Server went away mid-session
      await refreshGate();
      alert('Approval failed: local server is not reachable.');
    }
  }

  approveButtons.forEach(btn => btn.addEventListener('click', () => approve(btn)));
  document.addEventListener('visibilitychange', () => {
    if (document.visibilityState === 'visible') refreshGate();
  });
  refreshGate();
"""


def gate_script() -> str:
    """Client-side liveness gate for the approve controls."""
    return (
        _GATE_SCRIPT
        .replace("__PROBE_TIMEOUT_MS__", str(PROBE_TIMEOUT_SECONDS * 1000))
        .replace("__REFRESH_INTERVAL_MS__", str(AUTO_REFRESH_SECONDS * 1000))
        .replace("__STATUS_ENDPOINT__", STATUS_ENDPOINT)
        .replace("__APPROVE_ENDPOINT__", APPROVE_ENDPOINT)
    )


def render_html_report(summary: VerificationSummary) -> str:
    cards = "".join(_build_comparison_card(r) for r in summary.results)
    if not cards:
        cards = '<div class="empty-message">No snapshots found.</div>'

    return f'''<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Visual Review Dashboard</title>
<style>
  * {{ margin: 0; padding: 0; box-sizing: border-box; }}
  body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: #f9fafb; color: #111827; line-height: 1.5; }}
  .container {{ max-width: 1400px; margin: 0 auto; padding: 2rem; }}
  .header {{ background: white; padding: 2rem; border-radius: 8px; box-shadow: 0 1px 3px rgba(0,0,0,0.1); margin-bottom: 2rem; }}
  .header h1 {{ font-size: 2rem; font-weight: 700; margin-bottom: 0.5rem; color: #6366f1; }}
  .header .subtitle {{ color: #6b7280; font-size: 0.875rem; }}
  .summary {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(150px, 1fr)); gap: 1rem; margin-top: 1.5rem; }}
  .summary-card {{ background: #f9fafb; padding: 1rem; border-radius: 6px; border: 1px solid #e5e7eb; }}
  .summary-card .label {{ font-size: 0.75rem; text-transform: uppercase; color: #6b7280; font-weight: 600; letter-spacing: 0.05em; }}
  .summary-card .value {{ font-size: 2rem; font-weight: 700; margin-top: 0.25rem; }}
  .readonly-notice {{ background: #eff6ff; color: #1e3a8a; border-left: 4px solid #3b82f6; padding: 1rem 1.5rem; border-radius: 4px; margin-bottom: 2rem; font-size: 0.9rem; }}
  .readonly-notice code {{ background: #dbeafe; padding: 0.1rem 0.3rem; border-radius: 3px; }}
  .filters {{ display: flex; gap: 0.5rem; margin-bottom: 2rem; flex-wrap: wrap; }}
  .filter-btn {{ padding: 0.5rem 1rem; border: 1px solid #d1d5db; background: white; border-radius: 6px; cursor: pointer; font-size: 0.875rem; font-weight: 500; }}
  .filter-btn.active {{ background: #6366f1; color: white; border-color: #6366f1; }}
  .comparison-card {{ background: white; border-radius: 8px; box-shadow: 0 1px 3px rgba(0,0,0,0.1); margin-bottom: 2rem; overflow: hidden; }}
  .comparison-card.approved {{ opacity: 0.6; }}
  .card-header {{ padding: 1.5rem; border-bottom: 1px solid #e5e7eb; display: flex; justify-content: space-between; align-items: center; }}
  .screenshot-name {{ font-size: 1.125rem; font-weight: 600; }}
  .card-meta {{ display: flex; gap: 0.75rem; align-items: center; }}
  .status-badge {{ padding: 0.25rem 0.75rem; border-radius: 9999px; font-size: 0.75rem; font-weight: 600; color: white; text-transform: uppercase; letter-spacing: 0.05em; }}
  .diff-ratio {{ font-size: 0.875rem; color: #6b7280; font-weight: 500; }}
  .image-panel {{ padding: 1.5rem; background: #f9fafb; }}
  .image-panel.three-panel {{ display: grid; grid-template-columns: repeat(3, 1fr); gap: 1rem; }}
  .image-container {{ background: white; border-radius: 6px; overflow: hidden; border: 1px solid #e5e7eb; }}
  .image-container.single {{ max-width: 600px; margin: 0 auto; }}
  .image-label {{ padding: 0.5rem 1rem; background: #f3f4f6; font-size: 0.75rem; font-weight: 600; text-transform: uppercase; color: #6b7280; letter-spacing: 0.05em; }}
  .image-container img {{ width: 100%; height: auto; display: block; }}
  .card-actions {{ padding: 1.5rem; border-top: 1px solid #e5e7eb; display: flex; justify-content: flex-end; }}
  .approve-btn {{ padding: 0.75rem 1.5rem; background: #10b981; color: white; border: none; border-radius: 6px; font-size: 0.875rem; font-weight: 600; cursor: pointer; }}
  .approve-btn:disabled {{ background: #9ca3af; cursor: not-allowed; }}
  .warning-message {{ padding: 1rem 1.5rem; background: #fef3c7; color: #92400e; border-left: 4px solid #f59e0b; margin: 1rem 1.5rem; border-radius: 4px; }}
  .error-message {{ padding: 1rem 1.5rem; background: #fee2e2; color: #991b1b; border-left: 4px solid #ef4444; margin: 1rem 1.5rem; border-radius: 4px; }}
  .empty-message {{ color: #6b7280; text-align: center; padding: 2rem; }}
  @media (max-width: 768px) {{
    .image-panel.three-panel {{ grid-template-columns: 1fr; }}
    .summary {{ grid-template-columns: repeat(2, 1fr); }}
  }}
</style>
</head>
<body data-gate="offline">
<div class="container">
  <div class="header">
    <h1>Visual Review Dashboard</h1>
    <p class="subtitle">Generated {html.escape(summary.timestamp)}</p>
    <div class="summary">
        {_build_summary(summary)}
    </div>
  </div>

  <div id="readonly-notice" class="readonly-notice">
    <strong>Read-only report.</strong> Approving changes requires the local review server.
    Run <code>witness serve</code> and open the dashboard from the address it prints.
  </div>

  <div class="filters">
      {_build_filters(summary)}
  </div>

  <div class="comparisons">
    {cards}
  </div>
</div>

<script>
  const filterButtons = document.querySelectorAll('.filter-btn');
  const comparisonCards = document.querySelectorAll('.comparison-card');
  filterButtons.forEach(btn => {{
    btn.addEventListener('click', () => {{
      const filter = btn.dataset.filter;
      filterButtons.forEach(b => b.classList.remove('active'));
      btn.classList.add('active');
      comparisonCards.forEach(card => {{
        card.style.display = (filter === 'all' || card.dataset.status === filter) ? '' : 'none';
      }});
    }});
  }});
{gate_script()}
</script>
</body>
</html>'''


def generate_html_report(summary: VerificationSummary, output_path: Path) -> None:
    """Write the dashboard for ``summary`` to ``output_path``."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(render_html_report(summary))
    logger.debug("Wrote HTML report with %d cards to %s", len(summary.results), output_path)
