"""
USGS NWIS retrieval module.

Fetches site metadata (drainage area) and daily mean discharge from the
NWIS web services in RDB (tab-delimited) format. Transient failures are
retried with exponential backoff; exhausted retries raise RetrievalError.
"""

import logging
import time
from io import StringIO
from typing import Callable, Dict, Optional

import pandas as pd
import requests

from ..exceptions import RetrievalError
from ..preprocess.identifiers import normalize_site_id
from ..preprocess.units import cfs_to_m3s, sqmi_to_km2

logger = logging.getLogger(__name__)

BASE_URL_SITE = "https://waterservices.usgs.gov/nwis/site/"
BASE_URL_DAILY = "https://waterservices.usgs.gov/nwis/dv/"

DISCHARGE_PARAMETER = "00060"  # Discharge, ft³/s
DAILY_MEAN_STATISTIC = "00003"

# Status codes worth another attempt
RETRY_STATUS = {429, 500, 502, 503, 504}


def parse_rdb(text: str) -> pd.DataFrame:
    """
    Parse an NWIS RDB response.

    Comment lines start with '#'; the first remaining line is the header and
    the second the column format line (e.g. ``5s 15s 20d``), which is
    skipped. All values are read as strings.
    """
    lines = [ln for ln in text.splitlines() if ln.strip() and not ln.startswith("#")]
    if len(lines) < 2:
        return pd.DataFrame()
    return pd.read_csv(StringIO("\n".join(lines)), sep="\t", skiprows=[1], dtype=str)


class NWISClient:
    """
    Client for the NWIS site and daily-values services.

    Parameters
    ----------
    session : requests.Session, optional
        HTTP session; a new one is created if omitted
    max_retries : int
        Retries after the first attempt for timeouts, connection errors and
        retryable HTTP status codes
    backoff_s : float
        Base delay; attempt ``n`` waits ``backoff_s * 2**n`` seconds
    timeout_s : float
        Per-request timeout
    sleep : callable
        Sleep function (replaced in tests)
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        max_retries: int = 3,
        backoff_s: float = 1.0,
        timeout_s: float = 30,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session = session or requests.Session()
        self.max_retries = max_retries
        self.backoff_s = backoff_s
        self.timeout_s = timeout_s
        self._sleep = sleep

    def _get(self, url: str, params: Dict, site_id: str) -> Optional[str]:
        """
        GET ``url`` with retries.

        Returns the response text, or None when the service reports that it
        has no data for the site (HTTP 404).
        """
        last_error = None
        for attempt in range(self.max_retries + 1):
            try:
                response = self.session.get(url, params=params, timeout=self.timeout_s)
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                last_error = e
                logger.warning(
                    "Request for site %s failed (attempt %d/%d): %s",
                    site_id, attempt + 1, self.max_retries + 1, e,
                )
            else:
                if response.status_code == 404:
                    return None
                if response.status_code not in RETRY_STATUS:
                    try:
                        response.raise_for_status()
                    except requests.exceptions.HTTPError as e:
                        raise RetrievalError(f"NWIS request failed: {e}", site_id=site_id) from e
                    return response.text
                last_error = requests.exceptions.HTTPError(f"HTTP {response.status_code}")
                logger.warning(
                    "NWIS returned HTTP %d for site %s (attempt %d/%d)",
                    response.status_code, site_id, attempt + 1, self.max_retries + 1,
                )

            if attempt < self.max_retries:
                self._sleep(self.backoff_s * (2 ** attempt))

        raise RetrievalError(
            f"NWIS request for site {site_id} failed after {self.max_retries + 1} attempts: {last_error}",
            site_id=site_id,
        )

    def get_site_info(self, site_id: str) -> Optional[Dict]:
        """Expanded site description as a dict of strings, or None."""
        site_id = normalize_site_id(site_id)
        params = {"format": "rdb", "sites": site_id, "siteOutput": "expanded", "siteStatus": "all"}
        text = self._get(BASE_URL_SITE, params, site_id)
        if text is None:
            return None
        df = parse_rdb(text)
        if df.empty:
            return None
        return df.iloc[0].to_dict()

    def get_drainage_area(self, site_id: str) -> Optional[float]:
        """
        Drainage area in km².

        NWIS reports ``drain_area_va`` in mi²; None when not published.
        """
        info = self.get_site_info(site_id)
        if not info:
            return None
        raw = info.get("drain_area_va")
        try:
            value = float(raw)
        except (TypeError, ValueError):
            return None
        return sqmi_to_km2(value)

    def get_daily_flow(
        self,
        site_id: str,
        parameter_cd: str = DISCHARGE_PARAMETER,
        stat_cd: str = DAILY_MEAN_STATISTIC,
        to_m3s: bool = True
    ) -> pd.DataFrame:
        """
        Full period-of-record daily values for one site.

        Parameters
        ----------
        site_id : str
            USGS station number
        parameter_cd : str
            NWIS parameter code
        stat_cd : str
            NWIS statistic code
        to_m3s : bool
            Convert discharge from ft³/s to m³/s

        Returns
        -------
        pandas.DataFrame
            DatetimeIndex ``date`` and a ``discharge`` column. Empty when the
            site has no daily values. Qualifier strings such as 'Ice' or
            'Eqp' become NaN.
        """
        site_id = normalize_site_id(site_id)
        params = {
            "format": "rdb",
            "sites": site_id,
            "parameterCd": parameter_cd,
            "statCd": stat_cd,
            "startDT": "1800-01-01",
            "siteStatus": "all",
        }
        text = self._get(BASE_URL_DAILY, params, site_id)
        empty = pd.DataFrame({"discharge": pd.Series(dtype=float)}, index=pd.DatetimeIndex([], name="date"))
        if text is None:
            return empty

        df = parse_rdb(text)
        if df.empty or "datetime" not in df.columns:
            return empty

        value_cols = [
            c for c in df.columns
            if c.endswith(f"{parameter_cd}_{stat_cd}")
        ]
        if not value_cols:
            return empty

        out = pd.DataFrame({
            "date": pd.to_datetime(df["datetime"], errors="coerce"),
            "discharge": pd.to_numeric(df[value_cols[0]], errors="coerce"),
        }).dropna(subset=["date"]).set_index("date").sort_index()

        if to_m3s and parameter_cd == DISCHARGE_PARAMETER:
            out["discharge"] = cfs_to_m3s(out["discharge"])

        return out

    def __call__(self, site_id: str) -> pd.DataFrame:
        return self.get_daily_flow(site_id)
